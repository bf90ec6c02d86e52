"""Tests for storage data models."""

from __future__ import annotations

import pytest

from filerelay.storage.models import ResourceEntry, SweepReport


def _entry(**kwargs) -> ResourceEntry:
    defaults = dict(code="0042", uploaded_at=100.0, size_bytes=10, remaining_downloads=3)
    defaults.update(kwargs)
    return ResourceEntry(**defaults)


class TestResourceEntry:
    def test_age(self):
        assert _entry().age(160.0) == 60.0

    def test_expiry_is_strict(self):
        e = _entry()
        assert not e.is_expired(now=110.0, ttl=10.0)
        assert e.is_expired(now=110.5, ttl=10.0)

    def test_decremented_returns_copy(self):
        e = _entry()
        d = e.decremented()
        assert d.remaining_downloads == 2
        assert e.remaining_downloads == 3
        assert d.code == e.code and d.uploaded_at == e.uploaded_at

    def test_decrement_never_goes_negative(self):
        e = _entry(remaining_downloads=0)
        assert e.is_exhausted
        with pytest.raises(ValueError):
            e.decremented()

    def test_frozen(self):
        with pytest.raises(AttributeError):
            _entry().remaining_downloads = 5


class TestSweepReport:
    def test_ok_without_failures(self):
        assert SweepReport(started_at=1.0).ok

    def test_not_ok_with_failures(self):
        r = SweepReport(started_at=1.0, failed={"0001": "boom"})
        assert not r.ok

    def test_to_dict(self):
        r = SweepReport(started_at=1.0, finished_at=2.0, evicted=["0001"], deleted=["0001"])
        d = r.to_dict()
        assert d["evicted"] == ["0001"]
        assert d["deleted"] == ["0001"]
        assert d["failed"] == {}
        assert d["limiters_evicted"] == 0
