from __future__ import annotations

import json
import sys

from chatguard_api.contracts.load_schema import (
    EXAMPLE_SUFFIX,
    contract_name,
    examples_dir,
    schema_names,
)
from chatguard_api.contracts.validate_schema import validate_or_return_errors


def main() -> int:
    ex_dir = examples_dir()
    examples = {contract_name(p): p for p in sorted(ex_dir.glob(f"*{EXAMPLE_SUFFIX}"))}
    if not examples:
        sys.stderr.write(f"No examples found in {ex_dir}\n")
        return 1

    known = set(schema_names())
    errors: list[str] = []
    for name in sorted(known - examples.keys()):
        errors.append(f"missing example for schema {name} (expected {name}{EXAMPLE_SUFFIX})")
    for name in sorted(examples.keys() - known):
        errors.append(f"{examples[name].name}: no schema named {name}")

    for name, path in examples.items():
        if name not in known:
            continue
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            errors.append(f"{path.name}: invalid JSON: {e}")
            continue
        for issue in validate_or_return_errors(payload, name):
            errors.append(f"{path.name} {issue.json_path}: {issue.message}")

    for line in errors:
        sys.stderr.write(f"[ERROR] {line}\n")
    if errors:
        return 1
    sys.stdout.write(f"OK: {len(examples)} example(s) valid\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
