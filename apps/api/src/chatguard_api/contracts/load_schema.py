from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

from referencing import Registry, Resource
from referencing.jsonschema import DRAFT202012

SCHEMA_SUFFIX = ".schema.json"
EXAMPLE_SUFFIX = ".example.json"


def contracts_dir() -> Path:
    # apps/api/src/chatguard_api/contracts/load_schema.py -> packages/contracts
    return Path(__file__).resolve().parents[5] / "packages" / "contracts"


def schemas_dir() -> Path:
    return contracts_dir() / "schemas"


def examples_dir() -> Path:
    return contracts_dir() / "examples"


def contract_name(path: Path) -> str:
    """`guard_result.schema.json` / `guard_result.example.json` -> `guard_result`."""
    for suffix in (SCHEMA_SUFFIX, EXAMPLE_SUFFIX):
        if path.name.endswith(suffix):
            return path.name[: -len(suffix)]
    raise ValueError(f"Not a contract file: {path.name}")


@lru_cache
def _schemas_by_name() -> dict[str, dict[str, Any]]:
    out: dict[str, dict[str, Any]] = {}
    for path in sorted(schemas_dir().glob(f"*{SCHEMA_SUFFIX}")):
        doc = json.loads(path.read_text(encoding="utf-8"))
        if not doc.get("$id"):
            raise ValueError(f"Schema missing $id: {path}")
        out[contract_name(path)] = doc
    return out


def schema_names() -> list[str]:
    return list(_schemas_by_name())


def load_schema_by_name(schema_name: str) -> dict[str, Any]:
    try:
        return _schemas_by_name()[schema_name]
    except KeyError:
        raise KeyError(f"Unknown contract schema: {schema_name}") from None


@lru_cache
def schema_registry() -> Registry:
    """Every schema registered under its `$id`, so cross-document `$ref`s resolve."""
    resources = [
        (str(doc["$id"]), Resource.from_contents(doc, default_specification=DRAFT202012))
        for doc in _schemas_by_name().values()
    ]
    return Registry().with_resources(resources)
