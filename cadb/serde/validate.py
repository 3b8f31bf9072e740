import json, importlib.resources as pkg
from jsonschema import validate

def _schema(version: str, kind: str) -> dict:
    # kind in {"bundle"}
    with pkg.files(f"cadb.schemas.{version}").joinpath(f"{kind}.schema.json").open("r", encoding="utf-8") as f:
        return json.load(f)

def validate_doc(doc: dict, version: str, kind: str = "bundle"):
    schema = _schema(version, kind)
    validate(instance=doc, schema=schema)
