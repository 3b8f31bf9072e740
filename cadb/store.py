# store.py
# The certificate index: an ordered list of records loaded from a text file,
# its attribute sidecar, and the serial/subject lookup tables.
#
# Typical cycle:
#   db = CADB.load("index.txt")
#   db.build_indices()
#   ... insert / revoke / update ...
#   db.save("new")
#   db.rotate("new", "old")

import logging
from datetime import datetime
from typing import Iterator, List, Optional

from .attributes import DBAttributes, dump_attributes, load_attributes
from .errors import (
    DuplicateKeyError, InvalidStateError, MalformedRecordError, NotFoundError, from_oserror,
)
from .fileio import LocalFiles
from .index import RecordIndex, name_index, serial_index
from .record import (
    STATUS_REVOKED, STATUS_VALID, Record, canonical_serial, revocation_field,
)
from .rotation import ATTR_SUFFIX, rotate_pair, suffixed
from .txtdb import read_records, write_records
from .updatedb import ScanResult, scan_and_expire
from .utils import format_asn1_time, now_utc

log = logging.getLogger(__name__)


class CADB:
    def __init__(self, path: str, records: Optional[List[Record]] = None,
                 attributes: Optional[DBAttributes] = None,
                 files: Optional[LocalFiles] = None, sep: str = "."):
        self.path = path
        self.records: List[Record] = list(records or [])
        self.attributes = attributes or DBAttributes()
        self.files = files or LocalFiles()
        self.sep = sep
        self.serials: RecordIndex = serial_index()
        self.names: RecordIndex = name_index()
        self.indexed = False

    def __len__(self):
        return len(self.records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    @property
    def attr_path(self) -> str:
        return suffixed(self.path, ATTR_SUFFIX, self.sep)

    # ---- load ----
    @classmethod
    def load(cls, path: str, attributes: Optional[DBAttributes] = None,
             files: Optional[LocalFiles] = None, sep: str = ".") -> "CADB":
        """Read path and its attribute sidecar. Indices are not built here."""
        files = files or LocalFiles()
        try:
            with files.open_read(path) as f:
                records = read_records(f, path)
        except OSError as e:
            raise from_oserror(e, path, "unable to read index") from e
        attrs = load_attributes(suffixed(path, ATTR_SUFFIX, sep), attributes, files)
        log.info("loaded %d records from %s (unique_subject=%s)",
                 len(records), path, attrs.unique_subject)
        return cls(path, records, attrs, files, sep)

    # ---- indices ----
    def build_indices(self) -> None:
        """
        Index all rows by canonical serial and, when unique_subject is set,
        active rows by subject. On a duplicate both indices are dropped and
        DuplicateKeyError is raised; the rows themselves are left alone.
        """
        self.indexed = False
        try:
            self.serials.build(self.records)
            if self.attributes.unique_subject:
                self.names.build(self.records)
            else:
                self.names.clear()
        except DuplicateKeyError as e:
            self.serials.clear()
            self.names.clear()
            e.path = self.path
            log.error("error creating %s index for %s: %s", e.field, self.path, e.message)
            raise
        self.indexed = True

    def _require_indices(self) -> None:
        if not self.indexed:
            raise InvalidStateError("indices have not been built", path=self.path)

    # ---- queries ----
    def _find_serial(self, serial: str) -> Optional[int]:
        key = canonical_serial(serial)
        if self.indexed:
            return self.serials.get(key)
        for pos, rec in enumerate(self.records):
            if rec.canonical_serial == key:
                return pos
        return None

    def get_by_serial(self, serial: str) -> Optional[Record]:
        pos = self._find_serial(serial)
        return None if pos is None else self.records[pos]

    def get_by_name(self, subject: str) -> Optional[Record]:
        """The active record for subject, if any."""
        if self.indexed and self.attributes.unique_subject:
            pos = self.names.get(subject)
            return None if pos is None else self.records[pos]
        for rec in self.records:
            if rec.is_valid and rec.subject == subject:
                return rec
        return None

    def select(self, status: Optional[str] = None) -> List[Record]:
        return [r for r in self.records if status is None or r.status == status]

    # ---- mutation ----
    def insert(self, rec: Record) -> Record:
        """Append rec; rejects a serial or (with unique_subject) active subject already present."""
        self._require_indices()
        rec.check_insertable()
        pos = self.serials.conflict(rec)
        if pos is not None:
            raise DuplicateKeyError(
                f"serial {rec.serial} already present in row {pos + 1}",
                field="serial", rows=(pos,), path=self.path,
            )
        if self.attributes.unique_subject:
            pos = self.names.conflict(rec)
            if pos is not None:
                raise DuplicateKeyError(
                    f"there is already a valid certificate for '{rec.subject}'",
                    field="subject", rows=(pos,), path=self.path,
                )
        pos = len(self.records)
        self.records.append(rec)
        self.serials.add(pos, rec)
        if self.attributes.unique_subject:
            self.names.add(pos, rec)
        log.debug("inserted serial %s at row %d", rec.serial, pos + 1)
        return rec

    def set_status(self, pos: int, status: str) -> None:
        rec = self.records[pos]
        if rec.is_valid and status != STATUS_VALID and self.indexed:
            self.names.discard(pos, rec)
        rec.status = status

    def revoke(self, serial: str, when: Optional[datetime] = None,
               reason: Optional[str] = None) -> Record:
        pos = self._find_serial(serial)
        if pos is None:
            raise NotFoundError(f"no record with serial {serial}", path=self.path)
        rec = self.records[pos]
        if not rec.is_valid:
            raise InvalidStateError(
                f"serial {rec.serial} has status {rec.status}, only V can be revoked",
                path=self.path,
            )
        if reason and any(c in reason for c in "\t\r\n,"):
            raise MalformedRecordError(f"invalid revocation reason '{reason}'", path=self.path)
        rec.revocation_date = revocation_field(format_asn1_time(when or now_utc()), reason)
        self.set_status(pos, STATUS_REVOKED)
        log.info("revoked serial %s", rec.serial)
        return rec

    def update(self, reference: datetime) -> ScanResult:
        """Expire valid records at or past reference. See updatedb.scan_and_expire."""
        return scan_and_expire(self, reference)

    # ---- persistence ----
    def save(self, suffix: str, path: Optional[str] = None) -> None:
        """Write records to <path>.<suffix> and attributes to <path>.attr.<suffix>."""
        base = path or self.path
        for rec in self.records:
            rec.check()
        db_out = suffixed(base, suffix, self.sep)
        attr_out = suffixed(suffixed(base, ATTR_SUFFIX, self.sep), suffix, self.sep)
        try:
            with self.files.open_write(db_out) as f:
                n = write_records(f, self.records)
        except OSError as e:
            raise from_oserror(e, db_out, "unable to write index") from e
        try:
            with self.files.open_write(attr_out) as f:
                f.write(dump_attributes(self.attributes))
        except OSError as e:
            raise from_oserror(e, attr_out, "unable to write attribute file") from e
        log.info("wrote %d records to %s", n, db_out)

    def rotate(self, new_suffix: str, old_suffix: str, path: Optional[str] = None) -> None:
        rotate_pair(path or self.path, new_suffix, old_suffix, self.files, self.sep)


# Function-style entry points.

def load_store(path: str, attributes: Optional[DBAttributes] = None,
               files: Optional[LocalFiles] = None, sep: str = ".") -> CADB:
    return CADB.load(path, attributes, files, sep)


def build_indices(db: CADB) -> None:
    db.build_indices()


def save_store(db: CADB, path: str, suffix: str) -> None:
    db.save(suffix, path)


def rotate_store(path: str, new_suffix: str, old_suffix: str,
                 files: Optional[LocalFiles] = None, sep: str = ".") -> None:
    rotate_pair(path, new_suffix, old_suffix, files, sep)


