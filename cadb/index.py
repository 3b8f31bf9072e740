# index.py
# Lookup tables over the store's record list. Each maps a key to a row
# position in the owning list; rows are never copied.

import logging
from typing import Callable, Dict, List, Optional

from .errors import DuplicateKeyError
from .record import Record, canonical_serial

log = logging.getLogger(__name__)


class RecordIndex:
    def __init__(self, field: str, key: Callable[[Record], str],
                 qualifies: Optional[Callable[[Record], bool]] = None):
        self.field = field
        self.key = key
        self.qualifies = qualifies or (lambda rec: True)
        self._map: Dict[str, int] = {}

    def __len__(self):
        return len(self._map)

    def __contains__(self, key: str):
        return key in self._map

    def get(self, key: str) -> Optional[int]:
        return self._map.get(key)

    def clear(self) -> None:
        self._map.clear()

    def conflict(self, rec: Record) -> Optional[int]:
        """Row position already holding rec's key, if rec would be indexed."""
        if not self.qualifies(rec):
            return None
        return self._map.get(self.key(rec))

    def add(self, pos: int, rec: Record) -> None:
        if not self.qualifies(rec):
            return
        k = self.key(rec)
        prev = self._map.get(k)
        if prev is not None and prev != pos:
            raise DuplicateKeyError(
                f"duplicate {self.field} '{k}' in rows {prev + 1} and {pos + 1}",
                field=self.field, rows=(prev, pos),
            )
        self._map[k] = pos

    def discard(self, pos: int, rec: Record) -> None:
        k = self.key(rec)
        if self._map.get(k) == pos:
            del self._map[k]

    def build(self, records: List[Record]) -> None:
        self._map = {}
        for pos, rec in enumerate(records):
            self.add(pos, rec)
        log.debug("built %s index with %d entries", self.field, len(self._map))


def serial_index() -> RecordIndex:
    return RecordIndex("serial", lambda rec: canonical_serial(rec.serial))


def name_index() -> RecordIndex:
    # only active certificates have to carry a unique subject
    return RecordIndex("subject", lambda rec: rec.subject, lambda rec: rec.is_valid)
