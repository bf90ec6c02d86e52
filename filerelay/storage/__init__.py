from filerelay.storage.models import ResourceEntry, SweepReport
from filerelay.storage.resource_store import ResourceStore, format_code
from filerelay.storage.file_store import FileStore, sanitize_filename

__all__ = [
    "ResourceEntry",
    "SweepReport",
    "ResourceStore",
    "format_code",
    "FileStore",
    "sanitize_filename",
]
