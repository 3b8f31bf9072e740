from pathlib import Path

import pytest

from cadb.errors import DuplicateKeyError, MalformedRecordError, NotFoundError
from cadb.record import Record
from cadb.serde.io import dump_store, import_into, load_records, read_bundle
from cadb.store import CADB

from conftest import ROWS


def test_dump_store_shape(index_file: Path):
    doc = dump_store(CADB.load(str(index_file)))
    assert doc["version"] == "v1"
    assert doc["attributes"] == {"unique_subject": True}
    assert doc["source"] == str(index_file)
    assert [list(r.values()) for r in doc["records"]] == ROWS


@pytest.mark.parametrize("doc", [
    {},
    {"version": "v9", "attributes": {"unique_subject": True}, "records": []},
    {"version": "v1", "attributes": {"unique_subject": True},
     "records": [{"status": "X", "expiration_date": "300101000000Z", "serial": "01", "subject": "/CN=a"}]},
    {"version": "v1", "attributes": {"unique_subject": True},
     "records": [{"status": "V", "expiration_date": "2030", "serial": "01", "subject": "/CN=a"}]},
])
def test_invalid_bundles_are_malformed(doc):
    with pytest.raises(MalformedRecordError):
        load_records(doc)


def test_import_enforces_indices(tmp_path: Path):
    db = CADB(str(tmp_path / "index.txt"))
    db.build_indices()
    doc = {
        "version": "v1",
        "attributes": {"unique_subject": True},
        "records": [
            {"status": "V", "expiration_date": "300101000000Z", "serial": "0A", "subject": "/CN=a"},
            {"status": "V", "expiration_date": "300101000000Z", "serial": "A", "subject": "/CN=b"},
        ],
    }
    with pytest.raises(DuplicateKeyError):
        import_into(db, doc)
    assert [r.serial for r in db] == ["0A"]
    assert db.records[0].filename == "unknown"


def test_non_object_bundle_is_malformed():
    with pytest.raises(MalformedRecordError):
        load_records([])


def test_read_bundle_errors(tmp_path: Path):
    with pytest.raises(NotFoundError):
        read_bundle(str(tmp_path / "nope.json"))
    bad = tmp_path / "bad.json"
    bad.write_bytes(b"\xff\xfe{")
    with pytest.raises(MalformedRecordError) as ei:
        read_bundle(str(bad))
    assert ei.value.path == str(bad)


def test_dump_store_rejects_unexportable_dates(tmp_path: Path):
    db = CADB(str(tmp_path / "index.txt"), [Record("V", "not-a-date", "", "01", "unknown", "/CN=a")])
    with pytest.raises(MalformedRecordError):
        dump_store(db)


def test_bundle_with_undecodable_text_is_rejected_on_import(tmp_path: Path):
    db = CADB(str(tmp_path / "index.txt"))
    db.build_indices()
    doc = {
        "version": "v1",
        "attributes": {"unique_subject": True},
        "records": [{"status": "V", "expiration_date": "300101000000Z", "serial": "01",
                     "subject": "/CN=caf\udce9"}],
    }
    with pytest.raises(MalformedRecordError):
        import_into(db, doc)
    assert len(db) == 0
