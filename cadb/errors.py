# errors.py
# Error kinds raised by the record store, the serial allocator and rotation.
# Every public operation either returns its value or raises a CADBError.

import errno
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    NOT_FOUND = "not-found"
    MALFORMED_RECORD = "malformed-record"
    DUPLICATE_KEY = "duplicate-key"
    IO_FAILURE = "io-failure"
    NAME_TOO_LONG = "name-too-long"
    PARTIAL_ROTATION = "partial-rotation"
    INVALID_TIMESTAMP = "invalid-timestamp"
    INVALID_STATE = "invalid-state"


class CADBError(Exception):
    kind = ErrorKind.IO_FAILURE

    def __init__(self, message: str, path: Optional[str] = None, line: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.path = path
        self.line = line

    def location(self) -> str:
        if self.path is None:
            return ""
        if self.line is None:
            return self.path
        return f"{self.path}:{self.line}"

    def __str__(self):
        loc = self.location()
        return f"{loc}: {self.message}" if loc else self.message


class NotFoundError(CADBError):
    kind = ErrorKind.NOT_FOUND


class MalformedRecordError(CADBError):
    kind = ErrorKind.MALFORMED_RECORD


class DuplicateKeyError(CADBError):
    kind = ErrorKind.DUPLICATE_KEY

    def __init__(self, message: str, field: str, rows=(), path: Optional[str] = None):
        super().__init__(message, path=path)
        self.field = field
        self.rows = tuple(rows)


class IOFailure(CADBError):
    kind = ErrorKind.IO_FAILURE


class NameTooLongError(CADBError):
    kind = ErrorKind.NAME_TOO_LONG


class RotationError(CADBError):
    """A rotation step failed; the previous live file was put back where possible."""
    kind = ErrorKind.IO_FAILURE

    def __init__(self, message: str, path: Optional[str] = None, kind: Optional[ErrorKind] = None):
        super().__init__(message, path=path)
        if kind is not None:
            self.kind = kind


class PartialRotationError(RotationError):
    """One file of a rotated pair moved before a later rename failed."""
    kind = ErrorKind.PARTIAL_ROTATION


class InvalidTimestampError(CADBError):
    kind = ErrorKind.INVALID_TIMESTAMP


class InvalidStateError(CADBError):
    kind = ErrorKind.INVALID_STATE


def from_oserror(e: OSError, path: Optional[str] = None, what: str = "I/O error") -> CADBError:
    """Map an OSError to the matching CADBError kind."""
    path = path or e.filename
    reason = e.strerror or str(e)
    if e.errno == errno.ENOENT:
        return NotFoundError(f"{what}: {reason}", path=path)
    if e.errno == errno.ENAMETOOLONG:
        return NameTooLongError(f"{what}: {reason}", path=path)
    return IOFailure(f"{what}: {reason}", path=path)
