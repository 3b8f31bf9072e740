import errno
import logging
import os
from pathlib import Path

import pytest

from cadb.fileio import LocalFiles


ROWS = [
    ["V", "300101000000Z", "", "01", "unknown", "/CN=alice"],
    ["R", "300101000000Z", "240101000000Z,keyCompromise", "02", "unknown", "/CN=bob"],
    ["V", "20200101000000Z", "", "00A1", "certs/a1.pem", "/CN=carol"],
]


def index_text(rows) -> str:
    return "".join("\t".join(r) + "\n" for r in rows)


def write_index(path: Path, rows=ROWS, attr: str = None) -> Path:
    path.write_text(index_text(rows), encoding="utf-8")
    if attr is not None:
        Path(f"{path}.attr").write_text(attr, encoding="utf-8")
    return path


class FailingFiles(LocalFiles):
    """LocalFiles whose rename fails for chosen source paths."""
    def __init__(self, fail_src=(), err=errno.EACCES):
        super().__init__()
        self.fail_src = {str(p) for p in fail_src}
        self.err = err
        self.renames = []

    def rename(self, src, dst):
        self.renames.append((src, dst))
        if src in self.fail_src:
            raise OSError(self.err, os.strerror(self.err), src)
        super().rename(src, dst)


@pytest.fixture()
def index_file(tmp_path: Path) -> Path:
    return write_index(tmp_path / "index.txt")


@pytest.fixture(autouse=True)
def _reset_cadb_logging():
    yield
    logger = logging.getLogger("cadb")
    for h in list(logger.handlers):
        logger.removeHandler(h)
