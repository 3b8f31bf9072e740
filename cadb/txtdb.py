# txtdb.py
# Line codec for the index file: one record per line, six tab-separated fields.

from typing import IO, Iterable, Iterator, List

from .errors import MalformedRecordError
from .record import DELIMITER, NUM_FIELDS, Record, has_undecodable


def read_records(stream: IO[str], path: str = None) -> List[Record]:
    """Parse every line; a single bad line fails the whole read."""
    return list(iter_records(stream, path))


def iter_records(stream: IO[str], path: str = None) -> Iterator[Record]:
    for lineno, raw in enumerate(stream, start=1):
        line = raw.rstrip("\n")
        if line.endswith("\r"):
            line = line[:-1]
        if line.startswith("#"):
            continue
        if has_undecodable(line):
            raise MalformedRecordError("line is not valid text in the file encoding",
                                       path=path, line=lineno)
        values = line.split(DELIMITER)
        if len(values) != NUM_FIELDS:
            raise MalformedRecordError(
                f"wrong number of fields ({len(values)} instead of {NUM_FIELDS})",
                path=path, line=lineno,
            )
        yield Record.from_fields(values)


def format_record(rec: Record) -> str:
    return DELIMITER.join(rec.to_fields()) + "\n"


def write_records(stream: IO[str], records: Iterable[Record]) -> int:
    n = 0
    for rec in records:
        stream.write(format_record(rec))
        n += 1
    return n
