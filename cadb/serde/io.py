import json
import sys
from typing import List

from jsonschema import ValidationError

from . import v1  # noqa: F401  (registers the v1 adapter)

from .validate import validate_doc
from .registry import get as get_adapter

from ..errors import MalformedRecordError, from_oserror
from ..record import Record
from ..store import CADB
from ..utils import now_utc_str


def _detect_version(doc: dict) -> str:
    if not isinstance(doc, dict):
        raise ValueError("bundle must be a JSON object")
    v = doc.get("version")
    if not v:
        raise ValueError("Missing 'version' field in document")
    return v


# ----- schema adapters (in-memory) -----

def check_bundle(doc: dict) -> str:
    """Validate doc against its version's schema and return the version."""
    try:
        v = _detect_version(doc)
        get_adapter(v)
        validate_doc(doc, v, "bundle")
    except ValidationError as e:
        raise MalformedRecordError(f"bundle does not match schema: {e.message}") from e
    except ValueError as e:
        raise MalformedRecordError(str(e)) from e
    return v

def load_records(doc: dict) -> List[Record]:
    return get_adapter(check_bundle(doc)).to_records(doc)

def bundle_unique_subject(doc: dict) -> bool:
    return get_adapter(check_bundle(doc)).to_unique_subject(doc)

def dump_store(db: CADB, target_version: str = "v1") -> dict:
    try:
        ad = get_adapter(target_version)
    except ValueError as e:
        raise MalformedRecordError(str(e)) from e
    doc = ad.from_records(
        db.records, db.attributes.unique_subject,
        source=db.path, exported_at=now_utc_str(),
    )
    # Validate the **serialized** document before it leaves the process
    try:
        validate_doc(doc, doc.get("version", target_version), "bundle")
    except ValidationError as e:
        raise MalformedRecordError(
            f"index cannot be exported: {e.message}", path=db.path
        ) from e
    return doc

def import_into(db: CADB, doc: dict) -> int:
    """
    Insert every bundle record into an indexed store. Uniqueness is checked
    per record, so a clash stops the import with DuplicateKeyError after the
    preceding records went in; callers save only on success.
    """
    records = load_records(doc)
    for rec in records:
        db.insert(rec)
    return len(records)


# ----- file IO -----

def read_bundle(in_file: str) -> dict:
    try:
        if in_file in ("-", "/dev/stdin"):
            return json.load(sys.stdin)
        with open(in_file, encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        raise from_oserror(e, in_file, "unable to read bundle") from e
    except ValueError as e:
        # JSONDecodeError and UnicodeDecodeError
        raise MalformedRecordError(f"bundle is not valid JSON: {e}", path=in_file) from e

def write_bundle(doc: dict, out_file: str) -> None:
    data = json.dumps(doc, indent=2)
    if out_file == "-" or out_file == "/dev/stdout":
        print(data)
        return
    try:
        with open(out_file, "w", encoding="utf-8") as f:
            f.write(data + "\n")
    except OSError as e:
        raise from_oserror(e, out_file, "unable to write bundle") from e
