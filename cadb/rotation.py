# rotation.py
# Rename-based commit of a freshly written file over the live one.
#
#   base          -> base.<old>   (missing base is fine: first run)
#   base.<new>    -> base
#   on failure:   base.<old> -> base   (best effort)
#
# rename(2) replaces the destination atomically on one filesystem, so a
# single file is never observed half-written. Two files rotated together
# are not atomic as a pair.

import errno
import logging
from typing import Optional

from .errors import ErrorKind, PartialRotationError, RotationError, from_oserror
from .fileio import LocalFiles

log = logging.getLogger(__name__)

ATTR_SUFFIX = "attr"
_MISSING = (errno.ENOENT, errno.ENOTDIR)


def suffixed(base: str, suffix: str, sep: str = ".") -> str:
    """base + sep + suffix, e.g. 'index.txt' -> 'index.txt.new' (or 'index.txt-new')."""
    return f"{base}{sep}{suffix}"


def _try_rename(files: LocalFiles, src: str, dst: str) -> None:
    try:
        files.rename(src, dst)
    except OSError as e:
        log.warning("best-effort rename %s -> %s failed: %s", src, dst, e.strerror or e)


def _rename_error(e: OSError, message: str, path: str) -> RotationError:
    cause = from_oserror(e)
    kind = cause.kind if cause.kind is ErrorKind.NAME_TOO_LONG else None
    return RotationError(f"{message}: {cause.message}", path=path, kind=kind)


def _move_aside(files: LocalFiles, base: str, old: str) -> bool:
    """Step 1. Returns False when there was no live file to move."""
    try:
        files.rename(base, old)
        return True
    except OSError as e:
        if e.errno in _MISSING:
            log.debug("%s does not exist yet, nothing to keep as %s", base, old)
            return False
        log.error("unable to rename %s to %s: %s", base, old, e.strerror or e)
        raise _rename_error(e, f"unable to rename to {old}", base) from e


def _rotate(files: LocalFiles, base: str, new: str, old: str) -> bool:
    """Steps 1-3. Returns whether a previous live file now sits at old."""
    moved = _move_aside(files, base, old)
    try:
        files.rename(new, base)
    except OSError as e:
        log.error("unable to rename %s to %s: %s", new, base, e.strerror or e)
        if moved:
            _try_rename(files, old, base)
        raise _rename_error(e, f"unable to rename {new} into place", base) from e
    return moved


def rotate_file(base: str, new_suffix: str, old_suffix: str,
                files: Optional[LocalFiles] = None, sep: str = ".") -> None:
    """Replace base with base.<new_suffix>, keeping the replaced file as base.<old_suffix>."""
    files = files or LocalFiles()
    _rotate(files, base, suffixed(base, new_suffix, sep), suffixed(base, old_suffix, sep))
    log.info("rotated %s (new=%s, old=%s)", base, new_suffix, old_suffix)


def rotate_pair(base: str, new_suffix: str, old_suffix: str,
                files: Optional[LocalFiles] = None, sep: str = ".") -> None:
    """
    Rotate the record file and then its attribute sidecar.
    If the sidecar step fails the record file is moved back as well (best
    effort) and PartialRotationError is raised; a crash between the two
    sequences still leaves the pair out of step.
    """
    files = files or LocalFiles()
    new = suffixed(base, new_suffix, sep)
    old = suffixed(base, old_suffix, sep)
    attr = suffixed(base, ATTR_SUFFIX, sep)
    attr_new = suffixed(attr, new_suffix, sep)
    attr_old = suffixed(attr, old_suffix, sep)

    base_moved = _rotate(files, base, new, old)

    def undo_base():
        _try_rename(files, base, new)
        if base_moved:
            _try_rename(files, old, base)

    try:
        attr_moved = _move_aside(files, attr, attr_old)
    except RotationError as e:
        undo_base()
        raise PartialRotationError(e.message, path=attr) from e
    try:
        files.rename(attr_new, attr)
    except OSError as e:
        log.error("unable to rename %s to %s: %s", attr_new, attr, e.strerror or e)
        if attr_moved:
            _try_rename(files, attr_old, attr)
        undo_base()
        raise PartialRotationError(
            f"unable to rename {attr_new} into place: {from_oserror(e).message}", path=attr
        ) from e
    log.info("rotated %s and %s (new=%s, old=%s)", base, attr, new_suffix, old_suffix)
