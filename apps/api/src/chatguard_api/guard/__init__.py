from __future__ import annotations

__all__ = [
    "CHAT_DISCLAIMER",
    "PT_BR",
    "TERMS_TEXT",
    "ContentGuard",
    "GuardBlocked",
    "GuardOk",
    "GuardResult",
    "GuardWarning",
    "LocaleProfile",
    "Rule",
    "default_guard",
    "evaluate",
    "evaluate_or_block",
]

from .engine import ContentGuard, default_guard, evaluate, evaluate_or_block
from .locale import PT_BR, LocaleProfile
from .texts import CHAT_DISCLAIMER, TERMS_TEXT
from .types import GuardBlocked, GuardOk, GuardResult, GuardWarning, Rule
