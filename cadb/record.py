from dataclasses import dataclass, astuple, fields
from typing import List, Optional

from .errors import MalformedRecordError

STATUS_VALID = "V"
STATUS_REVOKED = "R"
STATUS_EXPIRED = "E"
STATUSES = (STATUS_VALID, STATUS_REVOKED, STATUS_EXPIRED)

# column order on disk
FIELD_NAMES = ("status", "expiration_date", "revocation_date", "serial", "filename", "subject")
NUM_FIELDS = len(FIELD_NAMES)

DELIMITER = "\t"
_FORBIDDEN = (DELIMITER, "\n", "\r")


def canonical_serial(serial: str) -> str:
    """Serial with leading zeros stripped and hex digits upper-cased. Used for comparison only."""
    return serial.lstrip("0").upper()


def has_undecodable(value: str) -> bool:
    """True when value carries bytes that did not decode (surrogateescape)."""
    return any("\udc80" <= c <= "\udcff" for c in value)


@dataclass
class Record:
    status: str = STATUS_VALID
    expiration_date: str = ""
    revocation_date: str = ""
    serial: str = ""
    filename: str = "unknown"
    subject: str = ""

    @classmethod
    def from_fields(cls, values: List[str]) -> "Record":
        if len(values) != NUM_FIELDS:
            raise MalformedRecordError(f"expected {NUM_FIELDS} fields, got {len(values)}")
        return cls(*values)

    def to_fields(self) -> List[str]:
        return list(astuple(self))

    def as_dict(self) -> dict:
        return dict(zip(FIELD_NAMES, astuple(self)))

    @property
    def canonical_serial(self) -> str:
        return canonical_serial(self.serial)

    @property
    def is_valid(self) -> bool:
        return self.status == STATUS_VALID

    def check(self) -> None:
        """Reject values that cannot be written back as a single line."""
        for f in fields(self):
            v = getattr(self, f.name)
            if not isinstance(v, str):
                raise MalformedRecordError(f"field '{f.name}' must be a string")
            if any(c in v for c in _FORBIDDEN):
                raise MalformedRecordError(f"field '{f.name}' contains a delimiter or newline")
            if has_undecodable(v):
                raise MalformedRecordError(f"field '{f.name}' contains undecodable bytes")

    def check_insertable(self) -> None:
        self.check()
        if self.status not in STATUSES:
            raise MalformedRecordError(f"unknown status '{self.status}'")
        if not self.serial:
            raise MalformedRecordError("serial must not be empty")
        try:
            int(self.serial, 16)
        except ValueError as e:
            raise MalformedRecordError(f"serial '{self.serial}' is not hexadecimal") from e


def revocation_field(date: str, reason: Optional[str] = None) -> str:
    return f"{date},{reason}" if reason else date
