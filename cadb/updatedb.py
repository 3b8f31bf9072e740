# updatedb.py
# Maintenance scan: valid records whose expiry is at or before a reference
# instant become expired. Bad expiry fields are counted, never fatal.

import logging
from dataclasses import dataclass
from datetime import datetime

from .errors import InvalidTimestampError
from .record import STATUS_EXPIRED
from .utils import parse_asn1_time

log = logging.getLogger(__name__)


@dataclass
class ScanResult:
    modified: int = 0
    errors: int = 0

    def __bool__(self):
        return self.modified > 0


def scan_and_expire(db, reference: datetime) -> ScanResult:
    """
    Walk every record of db (a CADB) and mark expired the valid ones whose
    expiration date is <= reference. Returns how many changed and how many
    expiration dates could not be parsed. Callers should skip save/rotate
    when nothing was modified.
    """
    if not isinstance(reference, datetime) or reference.tzinfo is None:
        raise InvalidTimestampError(f"reference time must be an aware datetime, got {reference!r}")

    result = ScanResult()
    for pos, rec in enumerate(db.records):
        if not rec.is_valid:
            continue
        expires = parse_asn1_time(rec.expiration_date)
        if expires is None:
            result.errors += 1
            log.warning("row %d (serial %s): unparsable expiration date '%s'",
                        pos + 1, rec.serial, rec.expiration_date)
            continue
        if expires <= reference:
            db.set_status(pos, STATUS_EXPIRED)
            result.modified += 1
            log.info("serial %s expired at %s", rec.serial, rec.expiration_date)

    log.info("update scan: %d expired, %d errors", result.modified, result.errors)
    return result
