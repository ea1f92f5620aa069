from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from jsonschema import Draft202012Validator

from .load_schema import load_schema_by_name, schema_registry


@dataclass(frozen=True)
class SchemaValidationIssue:
    json_path: str
    message: str


class SchemaValidationFailed(Exception):
    def __init__(self, schema_name: str, issues: list[SchemaValidationIssue]):
        super().__init__(f"Schema validation failed for {schema_name}: {len(issues)} issue(s)")
        self.schema_name = schema_name
        self.issues = issues


@lru_cache
def _validator(schema_name: str) -> Draft202012Validator:
    return Draft202012Validator(load_schema_by_name(schema_name), registry=schema_registry())


def validate_or_return_errors(instance: Any, schema_name: str) -> list[SchemaValidationIssue]:
    """All issues for `instance`, sorted by JSON path; empty when valid."""
    errors = sorted(_validator(schema_name).iter_errors(instance), key=lambda e: str(e.json_path))
    return [SchemaValidationIssue(json_path=str(e.json_path), message=e.message) for e in errors]


def validate_instance(instance: Any, schema_name: str) -> None:
    """Raise `SchemaValidationFailed` unless `instance` matches the named schema."""
    issues = validate_or_return_errors(instance, schema_name)
    if issues:
        raise SchemaValidationFailed(schema_name=schema_name, issues=issues)
