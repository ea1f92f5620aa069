from __future__ import annotations

import logging
import os
from collections.abc import Iterable

from chatguard_api.guard import (
    ContentGuard,
    GuardBlocked,
    GuardResult,
    default_guard,
    evaluate_or_block,
)

logger = logging.getLogger(__name__)

BANNED_WORD_REASON = "Banned word"


class EmptyMessageError(ValueError):
    """Raised when an outgoing message has no content to send."""


class MessageTooLongError(ValueError):
    def __init__(self, length: int, max_chars: int):
        super().__init__(f"Message too long: {length} > {max_chars} characters")
        self.length = length
        self.max_chars = max_chars


def max_message_chars() -> int:
    raw = (os.getenv("CHATGUARD_MAX_MESSAGE_CHARS") or "").strip()
    if not raw:
        return 4000
    try:
        value = int(raw)
    except ValueError:
        return 4000
    return max(1, min(100_000, value))


def ensure_within_limit(text: str, *, max_chars: int | None = None) -> None:
    limit = max_chars if max_chars is not None else max_message_chars()
    if len(text) > limit:
        raise MessageTooLongError(len(text), limit)


def find_banned_word(text: str, words: Iterable[str]) -> str | None:
    """Return the first banned word contained in `text` (case-insensitive substring)."""
    lowered = text.lower()
    for word in words:
        w = word.strip()
        if w and w.lower() in lowered:
            return w
    return None


def check_outgoing(
    text: str,
    *,
    banned_words: Iterable[str] = (),
    guard: ContentGuard | None = None,
    max_chars: int | None = None,
) -> GuardResult:
    """Server-side send gate: length bound, content guard, then banned words."""
    if not text or not text.strip():
        raise EmptyMessageError("Mensagem vazia")
    ensure_within_limit(text, max_chars=max_chars)

    guard = guard or default_guard()
    result = evaluate_or_block(text, guard)
    if isinstance(result, GuardBlocked):
        return result

    word = find_banned_word(text, banned_words)
    if word is not None:
        logger.info(
            "message blocked", extra={"event": "guard_blocked", "reason": BANNED_WORD_REASON}
        )
        return GuardBlocked(
            message=guard.locale.banned_word_template.format(word=word),
            reason=BANNED_WORD_REASON,
            rule_id="banned_word",
        )
    return result
