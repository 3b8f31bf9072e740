import logging
import os
from typing import IO

log = logging.getLogger(__name__)


class LocalFiles:
    """
    Thin wrapper around the local filesystem for text read/write and rename.
    Store, serial and rotation code only touch files through this object so
    tests can substitute failing implementations.
    """
    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def open_read(self, path: str) -> IO[str]:
        # bad bytes come through as lone surrogates; readers reject them per line
        return open(path, "r", encoding=self.encoding, errors="surrogateescape", newline="")

    def open_write(self, path: str) -> IO[str]:
        return open(path, "w", encoding=self.encoding, newline="")

    def rename(self, src: str, dst: str) -> None:
        # os.replace overwrites dst atomically on POSIX and Windows alike;
        # raises OSError(EXDEV) across devices.
        log.debug("rename %s -> %s", src, dst)
        os.replace(src, dst)

    def exists(self, path: str) -> bool:
        return os.path.exists(path)
