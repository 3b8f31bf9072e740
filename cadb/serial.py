# serial.py
# The CA serial file: a single non-negative integer stored as uppercase hex,
# always an even number of digits ("00" for zero), newline terminated.

import logging
import secrets
import string
from dataclasses import dataclass
from typing import IO, Optional

from .errors import MalformedRecordError, from_oserror
from .fileio import LocalFiles
from .rotation import rotate_file, suffixed

log = logging.getLogger(__name__)

# one bit short of 160 so the DER encoding never needs a sign byte
SERIAL_RAND_BITS = 159

_HEX = set(string.hexdigits)


def encode_serial(value: int) -> str:
    if value < 0:
        raise ValueError("serial numbers are non-negative")
    if value == 0:
        return "00"
    digits = format(value, "X")
    return digits if len(digits) % 2 == 0 else "0" + digits


def decode_serial(text: str, path: Optional[str] = None) -> int:
    s = text.strip()
    if not s:
        raise MalformedRecordError("no number in serial file", path=path)
    if any(c not in _HEX for c in s):
        raise MalformedRecordError(f"'{s}' is not a hexadecimal number", path=path)
    if len(s) % 2:
        raise MalformedRecordError(f"odd number of hex digits in '{s}'", path=path)
    return int(s, 16)


@dataclass(frozen=True)
class Serial:
    value: int
    text: str

    @classmethod
    def of(cls, value: int) -> "Serial":
        return cls(value, encode_serial(value))

    def __int__(self):
        return self.value

    def __str__(self):
        return self.text


def read_serial(stream: IO[str], path: Optional[str] = None) -> Serial:
    """Read the first logical line; a trailing backslash continues it on the next."""
    parts = []
    for raw in stream:
        line = raw.rstrip("\r\n").rstrip()
        if line.endswith("\\"):
            parts.append(line[:-1])
            continue
        parts.append(line)
        if "".join(parts).strip():
            break
    value = decode_serial("".join(parts), path)
    return Serial.of(value)


def rand_serial(bits: int = SERIAL_RAND_BITS) -> Serial:
    """Cryptographically random serial in [0, 2**bits)."""
    if bits <= 0:
        raise ValueError("bits must be positive")
    return Serial.of(secrets.randbits(bits))


def next_serial(serial: Serial) -> Serial:
    return Serial.of(serial.value + 1)


def load_serial(path: str, create: bool = False, bits: int = SERIAL_RAND_BITS,
                files: Optional[LocalFiles] = None) -> Serial:
    """Read path; when it does not exist and create is set, draw a random serial instead."""
    files = files or LocalFiles()
    try:
        with files.open_read(path) as f:
            serial = read_serial(f, path)
    except FileNotFoundError as e:
        if not create:
            raise from_oserror(e, path, "unable to load serial") from e
        serial = rand_serial(bits)
        log.info("no serial file at %s, generated random %d-bit serial", path, bits)
        return serial
    except OSError as e:
        raise from_oserror(e, path, "unable to load serial") from e
    log.debug("loaded serial %s from %s", serial.text, path)
    return serial


def save_serial(path: str, suffix: Optional[str], serial: Serial,
                files: Optional[LocalFiles] = None, sep: str = ".") -> Serial:
    """Write serial to <path>.<suffix> (or path itself when suffix is None)."""
    files = files or LocalFiles()
    out = path if suffix is None else suffixed(path, suffix, sep)
    saved = Serial.of(int(serial))
    try:
        with files.open_write(out) as f:
            f.write(saved.text + "\n")
    except OSError as e:
        raise from_oserror(e, out, "unable to write serial") from e
    log.debug("wrote serial %s to %s", saved.text, out)
    return saved


def rotate_serial(path: str, new_suffix: str, old_suffix: str,
                  files: Optional[LocalFiles] = None, sep: str = ".") -> None:
    rotate_file(path, new_suffix, old_suffix, files, sep)
