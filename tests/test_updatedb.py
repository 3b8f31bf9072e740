from datetime import datetime, timezone
from pathlib import Path

import pytest

from cadb.errors import InvalidTimestampError
from cadb.store import CADB
from cadb.updatedb import scan_and_expire
from cadb.utils import parse_asn1_time, parse_reference_time

from conftest import write_index

REF = datetime(2021, 1, 1, tzinfo=timezone.utc)


def _db(tmp_path: Path, rows) -> CADB:
    db = CADB.load(str(write_index(tmp_path / "index.txt", rows)))
    db.build_indices()
    return db


def test_expired_valid_record_transitions(tmp_path: Path):
    db = _db(tmp_path, [
        ["V", "20200101000000Z", "", "01", "unknown", "/CN=old"],
        ["V", "20990101000000Z", "", "02", "unknown", "/CN=new"],
    ])
    result = scan_and_expire(db, REF)
    assert result.modified == 1
    assert result.errors == 0
    assert [r.status for r in db] == ["E", "V"]
    assert db.get_by_name("/CN=old") is None
    assert db.get_by_name("/CN=new").serial == "02"


def test_expiry_exactly_at_reference_counts(tmp_path: Path):
    db = _db(tmp_path, [["V", "210101000000Z", "", "01", "unknown", "/CN=edge"]])
    assert db.update(REF).modified == 1


def test_revoked_and_expired_are_untouched(tmp_path: Path):
    db = _db(tmp_path, [
        ["R", "200101000000Z", "191201000000Z", "01", "unknown", "/CN=r"],
        ["E", "200101000000Z", "", "02", "unknown", "/CN=e"],
    ])
    result = db.update(REF)
    assert result.modified == 0
    assert not result
    assert [r.status for r in db] == ["R", "E"]


def test_bad_expiry_is_counted_not_fatal(tmp_path: Path):
    db = _db(tmp_path, [
        ["V", "not-a-date", "", "01", "unknown", "/CN=bad"],
        ["V", "200101000000Z", "", "02", "unknown", "/CN=old"],
    ])
    result = db.update(REF)
    assert result.modified == 1
    assert result.errors == 1
    assert db.records[0].status == "V"


def test_reference_must_be_aware(tmp_path: Path):
    db = _db(tmp_path, [["V", "200101000000Z", "", "01", "unknown", "/CN=x"]])
    with pytest.raises(InvalidTimestampError):
        db.update(datetime(2021, 1, 1))
    with pytest.raises(InvalidTimestampError):
        db.update(None)
    assert db.records[0].status == "V"


def test_scan_works_without_indices(tmp_path: Path):
    db = CADB.load(str(write_index(tmp_path / "index.txt",
                                   [["V", "200101000000Z", "", "01", "unknown", "/CN=x"]])))
    assert db.update(REF).modified == 1


def test_asn1_time_parsing():
    assert parse_asn1_time("491231235959Z") == datetime(2049, 12, 31, 23, 59, 59, tzinfo=timezone.utc)
    assert parse_asn1_time("500101000000Z") == datetime(1950, 1, 1, tzinfo=timezone.utc)
    assert parse_asn1_time("20990101000000Z").year == 2099
    assert parse_asn1_time("201399000000Z") is None
    assert parse_asn1_time("") is None


def test_reference_time_accepts_rfc3339():
    assert parse_reference_time("2021-01-01T00:00:00Z") == REF
    assert parse_reference_time("20210101000000Z") == REF
    with pytest.raises(InvalidTimestampError):
        parse_reference_time("yesterday")
