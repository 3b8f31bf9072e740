from __future__ import annotations

from typing import List

from .registry import VersionAdapter, register
from ..record import Record


class V1Adapter(VersionAdapter):
    # ---- to records ----
    def _record_from_doc(self, item: dict) -> Record:
        return Record(
            status=item.get("status", ""),
            expiration_date=item.get("expiration_date", "") or "",
            revocation_date=item.get("revocation_date", "") or "",
            serial=item.get("serial", ""),
            filename=item.get("filename", "unknown") or "unknown",
            subject=item.get("subject", "") or "",
        )

    def to_records(self, doc: dict) -> List[Record]:
        return [self._record_from_doc(r) for r in doc.get("records", []) or []]

    def to_unique_subject(self, doc: dict) -> bool:
        return bool(doc.get("attributes", {}).get("unique_subject", True))

    # ---- from records ----
    def from_records(self, records: List[Record], unique_subject: bool, **meta) -> dict:
        return {
            "version": "v1",
            "attributes": {"unique_subject": unique_subject},
            "records": [
                r.as_dict() for r in records
            ],
            **({"source": meta["source"]} if meta.get("source") else {}),
            **({"exported_at": meta["exported_at"]} if meta.get("exported_at") else {}),
        }


# register adapter on import
register("v1", V1Adapter())
