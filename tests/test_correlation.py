# tests/test_correlation.py
import pytest

from ccnping.client.correlation import CorrelationTable, ProbeRecord
from ccnping.core.errors import DuplicateProbeError, ProbeNotFoundError
from ccnping.core.name import Name

KEY = Name.from_uri("ccnx:/example/ping/42")


def test_record_then_resolve():
    table = CorrelationTable()
    table.record(KEY, 42, 10.5)

    assert table.pending_count() == 1
    assert KEY in table
    assert table.resolve(KEY) == ProbeRecord(identifier=42, sent_at=10.5)
    assert table.pending_count() == 0


def test_resolve_is_read_once():
    table = CorrelationTable()
    table.record(KEY, 42, 0.0)
    table.resolve(KEY)

    with pytest.raises(ProbeNotFoundError):
        table.resolve(KEY)


def test_resolve_unknown_key():
    table = CorrelationTable()

    with pytest.raises(ProbeNotFoundError):
        table.resolve(KEY)
    assert len(table) == 0


def test_record_rejects_live_key():
    table = CorrelationTable()
    table.record(KEY, 42, 0.0)

    with pytest.raises(DuplicateProbeError):
        table.record(KEY, 42, 1.0)
    assert table.resolve(KEY).sent_at == 0.0


def test_key_can_be_reused_after_resolve():
    table = CorrelationTable()
    table.record(KEY, 42, 0.0)
    table.resolve(KEY)
    table.record(KEY, 42, 5.0)

    assert table.resolve(KEY).sent_at == 5.0
