import json
from pathlib import Path

import pytest

from cadb.cli import main

from conftest import ROWS, index_text, write_index


def _out(capsys):
    return json.loads(capsys.readouterr().out)


def test_updatedb_expires_and_rotates(index_file: Path, capsys):
    rc = main(["updatedb", str(index_file), "20210101000000Z"])
    assert rc == 0
    doc = _out(capsys)
    assert doc["expired"] == 1
    assert doc["result"] == "updated"

    lines = index_file.read_text().splitlines()
    assert lines[2].startswith("E\t20200101000000Z")
    assert Path(f"{index_file}.old").read_text() == index_text(ROWS)
    assert Path(f"{index_file}.attr").read_text() == "unique_subject = yes\n"
    assert not Path(f"{index_file}.new").exists()


def test_updatedb_without_changes_writes_nothing(index_file: Path, capsys):
    rc = main(["updatedb", str(index_file), "2010-01-01T00:00:00Z"])
    assert rc == 0
    assert _out(capsys)["expired"] == 0
    assert not Path(f"{index_file}.new").exists()
    assert not Path(f"{index_file}.old").exists()


def test_updatedb_errors_return_nonzero(tmp_path: Path, capsys):
    assert main(["updatedb", str(tmp_path / "missing.txt"), "20210101000000Z"]) == 1
    assert main(["updatedb", str(tmp_path / "missing.txt"), "not a date"]) == 1


def test_list_filters_by_status(index_file: Path, capsys):
    main(["list", str(index_file), "--status", "R"])
    rows = _out(capsys)
    assert [r["serial"] for r in rows] == ["02"]


def test_list_table_output(index_file: Path, capsys):
    main(["--output", "table", "list", str(index_file)])
    out = capsys.readouterr().out
    assert out.splitlines()[0].split() == ["STATUS", "EXPIRES", "REVOKED", "SERIAL", "FILE", "SUBJECT"]
    assert "/CN=carol" in out


def test_show_and_revoke(index_file: Path, capsys):
    main(["show", str(index_file), "--serial", "1"])
    assert _out(capsys)["subject"] == "/CN=alice"

    rc = main(["revoke", str(index_file), "--serial", "01", "--reason", "superseded",
               "--date", "20240501120000Z"])
    assert rc == 0
    assert _out(capsys)["revocation_date"] == "240501120000Z,superseded"
    assert index_file.read_text().splitlines()[0] == "R\t300101000000Z\t240501120000Z,superseded\t01\tunknown\t/CN=alice"

    assert main(["revoke", str(index_file), "--serial", "01"]) == 1


def test_serial_next_and_show(tmp_path: Path, capsys):
    p = tmp_path / "serial"
    p.write_text("0A\n")
    assert main(["serial", "next", str(p)]) == 0
    doc = _out(capsys)
    assert (doc["serial"], doc["next"]) == ("0A", "0B")
    assert p.read_text() == "0B\n"
    assert Path(f"{p}.old").read_text() == "0A\n"

    main(["--output", "yaml", "serial", "show", str(p)])
    out = capsys.readouterr().out
    assert "serial:" in out and "0B" in out


def test_serial_init(tmp_path: Path, capsys):
    p = tmp_path / "serial"
    assert main(["serial", "init", str(p), "--bits", "64"]) == 0
    doc = _out(capsys)
    assert doc["result"] == "created"
    assert int(p.read_text(), 16) < 2 ** 64

    main(["serial", "init", str(p)])
    assert _out(capsys)["result"] == "exists"


def test_export_import(index_file: Path, tmp_path: Path, capsys):
    bundle = tmp_path / "bundle.json"
    assert main(["export", str(index_file), "--file", str(bundle)]) == 0
    doc = json.loads(bundle.read_text())
    assert doc["version"] == "v1"
    assert len(doc["records"]) == 3

    target = tmp_path / "copy.txt"
    assert main(["import", str(target), "--file", str(bundle)]) == 0
    assert _out(capsys)["records"] == 3
    assert target.read_text() == index_file.read_text()

    # importing again collides on serial
    assert main(["import", str(target), "--file", str(bundle)]) == 1
    assert target.read_text() == index_file.read_text()


def test_export_of_unexportable_index_fails_cleanly(tmp_path: Path, capsys):
    p = write_index(tmp_path / "index.txt", [["V", "not-a-date", "", "01", "unknown", "/CN=a"]])
    assert main(["export", str(p), "--file", str(tmp_path / "out.json")]) == 1
    assert not (tmp_path / "out.json").exists()


def test_import_bad_bundles_fail_cleanly(tmp_path: Path):
    target = tmp_path / "copy.txt"
    assert main(["import", str(target), "--file", str(tmp_path / "nope.json")]) == 1

    garbled = tmp_path / "garbled.json"
    garbled.write_text("{not json")
    assert main(["import", str(target), "--file", str(garbled)]) == 1

    future = tmp_path / "future.json"
    future.write_text(json.dumps({"version": "v9", "attributes": {"unique_subject": True}, "records": []}))
    assert main(["import", str(target), "--file", str(future)]) == 1
    assert not target.exists()


@pytest.mark.parametrize("argv", [
    ["--log-level", "LOUD", "serial", "show", "serial"],
    ["serial", "init", "serial", "--bits", "-3"],
    ["serial", "init", "serial", "--bits", "lots"],
])
def test_invalid_options_are_usage_errors(argv, capsys):
    with pytest.raises(SystemExit) as ei:
        main(argv)
    assert ei.value.code == 2


def test_log_level_is_case_insensitive(tmp_path: Path, capsys):
    p = tmp_path / "serial"
    p.write_text("01\n")
    assert main(["--log-level", "debug", "serial", "show", str(p)]) == 0
    assert _out(capsys)["serial"] == "01"
