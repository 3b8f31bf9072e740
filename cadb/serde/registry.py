from typing import Dict, List

from ..record import Record


class VersionAdapter:
    """Converts between a versioned bundle document and in-memory records."""
    version = ""

    def to_records(self, doc: dict) -> List[Record]:
        raise NotImplementedError

    def to_unique_subject(self, doc: dict) -> bool:
        raise NotImplementedError

    def from_records(self, records: List[Record], unique_subject: bool, **meta) -> dict:
        raise NotImplementedError


_ADAPTERS: Dict[str, VersionAdapter] = {}


def register(version: str, adapter: VersionAdapter) -> None:
    adapter.version = version
    _ADAPTERS[version] = adapter


def get(version: str) -> VersionAdapter:
    try:
        return _ADAPTERS[version]
    except KeyError:
        raise ValueError(f"Unsupported bundle version '{version}'") from None
