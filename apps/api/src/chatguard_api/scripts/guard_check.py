from __future__ import annotations

import argparse
import json
import sys

from chatguard_api.guard import GuardBlocked, GuardResult, GuardWarning, evaluate_or_block
from chatguard_api.logging_config import configure_logging

EXIT_OK = 0
EXIT_WARNING = 1
EXIT_BLOCKED = 2


def _format_line(result: GuardResult) -> str:
    if isinstance(result, GuardBlocked):
        return f"blocked\t{result.reason}\t{result.message}"
    if isinstance(result, GuardWarning):
        return f"warning\t{result.rule_id or '-'}\t{result.message}"
    return "ok"


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Classify chat messages for patient-identifying content (offline)."
    )
    parser.add_argument("texts", nargs="*", help="Messages to check.")
    parser.add_argument(
        "--stdin",
        action="store_true",
        help="Read one message per line from stdin (in addition to positional texts).",
    )
    parser.add_argument("--json", action="store_true", help="Emit one JSON object per line.")
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args(argv)

    configure_logging(level=args.log_level)

    texts = list(args.texts)
    if args.stdin:
        texts.extend(line.rstrip("\n") for line in sys.stdin)
    if not texts:
        parser.error("provide at least one message or --stdin")

    exit_code = EXIT_OK
    for text in texts:
        result = evaluate_or_block(text)
        if args.json:
            sys.stdout.write(json.dumps(result.to_dict(), ensure_ascii=False) + "\n")
        else:
            sys.stdout.write(_format_line(result) + "\n")

        if isinstance(result, GuardBlocked):
            exit_code = EXIT_BLOCKED
        elif isinstance(result, GuardWarning) and exit_code == EXIT_OK:
            exit_code = EXIT_WARNING
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
