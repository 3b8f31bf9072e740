import logging
from typing import Optional

from .config import Settings
from .errors import NotFoundError
from .record import STATUS_VALID
from .render import output
from .serde.io import bundle_unique_subject, dump_store, import_into, read_bundle, write_bundle
from .store import CADB
from .utils import days_until, parse_asn1_time, parse_reference_time

log = logging.getLogger(__name__)


def _open(dbfile: str, settings: Settings, index: bool = True) -> CADB:
    db = CADB.load(dbfile, sep=settings.suffix_sep)
    if index:
        db.build_indices()
    return db

def _commit(db: CADB, settings: Settings) -> None:
    db.save(settings.new_suffix)
    db.rotate(settings.new_suffix, settings.old_suffix)

def _row(r):
    return [r.status, r.expiration_date, r.revocation_date, r.serial, r.filename, r.subject]

_HEADER = ["STATUS", "EXPIRES", "REVOKED", "SERIAL", "FILE", "SUBJECT"]


def db_updatedb(settings: Settings, dbfile: str, testdate: str, out: str) -> int:
    """Expire valid certificates whose end date is at or before testdate; commit if anything changed."""
    reference = parse_reference_time(testdate)
    db = _open(dbfile, settings)
    result = db.update(reference)
    if result.modified > 0:
        _commit(db, settings)
    else:
        log.info("nothing expired in %s, not rewriting", dbfile)
    doc = {"result": "updated" if result.modified else "unchanged",
           "file": dbfile, "expired": result.modified, "errors": result.errors}
    output(doc, out, [["RESULT", "EXPIRED", "ERRORS"], [doc["result"], result.modified, result.errors]])
    return result.modified

def db_list(settings: Settings, dbfile: str, status: Optional[str], expiring_in: Optional[int], out: str):
    db = _open(dbfile, settings, index=False)
    rows = []
    for r in db.select(status):
        if expiring_in is not None:
            if r.status != STATUS_VALID:
                continue
            exp = parse_asn1_time(r.expiration_date)
            if exp is None or days_until(exp) > expiring_in:
                continue
        rows.append(r)
    output([r.as_dict() for r in rows], out, [_HEADER] + [_row(r) for r in rows])

def db_show(settings: Settings, dbfile: str, serial: str, out: str):
    db = _open(dbfile, settings)
    rec = db.get_by_serial(serial)
    if rec is None:
        raise NotFoundError(f"no record with serial {serial}", path=dbfile)
    rows = [["FIELD", "VALUE"]] + [[k, v] for k, v in rec.as_dict().items()]
    exp = parse_asn1_time(rec.expiration_date)
    if exp is not None and rec.status == STATUS_VALID:
        rows.append(["days_left", str(days_until(exp))])
    output(rec.as_dict(), out, rows)

def db_revoke(settings: Settings, dbfile: str, serial: str, reason: Optional[str], date: Optional[str], out: str):
    db = _open(dbfile, settings)
    when = parse_reference_time(date) if date else None
    rec = db.revoke(serial, when=when, reason=reason)
    _commit(db, settings)
    output({"result": "revoked", "serial": rec.serial, "revocation_date": rec.revocation_date}, out,
           [["RESULT", "SERIAL", "REVOKED"], ["revoked", rec.serial, rec.revocation_date]])

def db_export(settings: Settings, dbfile: str, out_file: str):
    db = _open(dbfile, settings, index=False)
    write_bundle(dump_store(db), out_file)

def db_import(settings: Settings, dbfile: str, in_file: str, out: str):
    doc = read_bundle(in_file)
    unique_subject = bundle_unique_subject(doc)
    try:
        db = _open(dbfile, settings)
    except NotFoundError:
        log.info("%s does not exist, starting an empty index", dbfile)
        db = CADB(dbfile, sep=settings.suffix_sep)
        db.attributes.unique_subject = unique_subject
        db.build_indices()
    n = import_into(db, doc)
    if n:
        _commit(db, settings)
    output({"result": "imported", "file": dbfile, "records": n}, out,
           [["RESULT", "RECORDS"], ["imported", n]])
