# attributes.py
# The "<db>.attr" sidecar: `key = value` lines, only unique_subject is read.

import logging
from dataclasses import dataclass
from typing import IO, Optional

from .errors import from_oserror
from .fileio import LocalFiles

log = logging.getLogger(__name__)


@dataclass
class DBAttributes:
    unique_subject: bool = True


def parse_yesno(s: Optional[str], default: bool) -> bool:
    """First character decides: f/n/0 false, t/y/1 true, anything else the default."""
    if not s:
        return default
    c = s[0].lower()
    if c in "fn0":
        return False
    if c in "ty1":
        return True
    return default


def read_attributes(stream: IO[str], defaults: Optional[DBAttributes] = None) -> DBAttributes:
    attrs = DBAttributes(**vars(defaults)) if defaults else DBAttributes()
    for raw in stream:
        line = raw.strip()
        if not line or line[0] in "#;" or line.startswith("["):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        if key.strip() == "unique_subject":
            # quoted or trailing-comment values are tolerated, like a config file
            value = value.split("#", 1)[0].strip().strip("\"'")
            attrs.unique_subject = parse_yesno(value, attrs.unique_subject)
    return attrs


def load_attributes(path: str, defaults: Optional[DBAttributes] = None,
                    files: Optional[LocalFiles] = None) -> DBAttributes:
    """Missing file means defaults; any other read error propagates."""
    files = files or LocalFiles()
    try:
        with files.open_read(path) as f:
            return read_attributes(f, defaults)
    except FileNotFoundError:
        log.debug("no attribute file at %s, using defaults", path)
        return DBAttributes(**vars(defaults)) if defaults else DBAttributes()
    except OSError as e:
        raise from_oserror(e, path, "unable to read attribute file") from e


def dump_attributes(attrs: DBAttributes) -> str:
    return f"unique_subject = {'yes' if attrs.unique_subject else 'no'}\n"
