# utils.py
# Timestamp helpers shared by the record store, the maintenance scan and the CLI.
# Record dates are ASN.1 time strings (UTCTime or GeneralizedTime); everything
# handed around in memory is an aware UTC datetime.

import re
from datetime import datetime, timezone
from typing import Optional

from dateutil import parser as dtp

from .errors import InvalidTimestampError

_UTCTIME = re.compile(r"^(\d{2})(\d{2})(\d{2})(\d{2})(\d{2})(\d{2})Z$")
_GENTIME = re.compile(r"^(\d{4})(\d{2})(\d{2})(\d{2})(\d{2})(\d{2})Z$")


def parse_asn1_time(s: str) -> Optional[datetime]:
    """Parse YYMMDDHHMMSSZ or YYYYMMDDHHMMSSZ into an aware UTC datetime.
    Two-digit years below 50 are 20YY, the rest 19YY. Returns None when
    the string is not a valid time."""
    m = _UTCTIME.match(s or "")
    if m:
        yy = int(m.group(1))
        year = 2000 + yy if yy < 50 else 1900 + yy
        rest = m.groups()[1:]
    else:
        m = _GENTIME.match(s or "")
        if not m:
            return None
        year = int(m.group(1))
        rest = m.groups()[1:]
    try:
        return datetime(year, *(int(x) for x in rest), tzinfo=timezone.utc)
    except ValueError:
        return None


def format_asn1_time(dt: datetime) -> str:
    """Format as UTCTime for 1950..2049, GeneralizedTime otherwise."""
    dt = dt.astimezone(timezone.utc)
    if 1950 <= dt.year < 2050:
        return dt.strftime("%y%m%d%H%M%SZ")
    return dt.strftime("%Y%m%d%H%M%SZ")


def parse_rfc3339(s: str) -> datetime:
    """Parse RFC3339/ISO8601 into aware UTC datetime."""
    dt = dtp.isoparse(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_reference_time(s: str) -> datetime:
    """Accept an ASN.1 time string or RFC3339; raise InvalidTimestampError otherwise."""
    dt = parse_asn1_time(s)
    if dt is not None:
        return dt
    try:
        return parse_rfc3339(s)
    except (ValueError, OverflowError) as e:
        raise InvalidTimestampError(f"invalid timestamp '{s}'") from e


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def now_utc_str() -> str:
    """Return current UTC time as RFC3339 string, e.g. 2025-10-04T12:34:56Z."""
    return now_utc().strftime("%Y-%m-%dT%H:%M:%SZ")


def days_until(expire: datetime, now: Optional[datetime] = None) -> int:
    """Whole days from now until expire (negative once it has passed)."""
    now = now or now_utc()
    return int((expire - now).total_seconds() // 86400)
