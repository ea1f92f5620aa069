from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from functools import lru_cache

from .hard_block import build_hard_block_rules
from .locale import PT_BR, LocaleProfile
from .soft_warning import build_soft_warning_rules
from .types import HARD_BLOCK, OK, SOFT_WARNING, GuardBlocked, GuardResult, GuardWarning, Rule

logger = logging.getLogger(__name__)

GUARD_ERROR_REASON = "Guard error"


def _first_match(rules: tuple[Rule, ...], text: str) -> Rule | None:
    for rule in rules:
        if rule.matches(text):
            return rule
    return None


@dataclass(frozen=True)
class ContentGuard:
    """Ordered two-tier classifier for outgoing chat messages.

    Hard-block rules run first; the first match blocks. Soft-warning rules run only if
    no hard-block rule matched; the first match warns. Otherwise the message is ok.
    Instances are immutable: registering a rule returns a new guard.
    """

    hard_block_rules: tuple[Rule, ...] = ()
    soft_warning_rules: tuple[Rule, ...] = ()
    locale: LocaleProfile = PT_BR

    @classmethod
    def for_locale(cls, profile: LocaleProfile) -> ContentGuard:
        return cls(
            hard_block_rules=build_hard_block_rules(profile),
            soft_warning_rules=build_soft_warning_rules(profile),
            locale=profile,
        )

    def evaluate(self, text: str) -> GuardResult:
        if not text or not text.strip():
            return OK

        hit = _first_match(self.hard_block_rules, text)
        if hit is not None:
            return GuardBlocked(message=hit.message, reason=hit.reason, rule_id=hit.id)

        hit = _first_match(self.soft_warning_rules, text)
        if hit is not None:
            return GuardWarning(message=hit.message, rule_id=hit.id)

        return OK

    def rule_ids(self) -> list[str]:
        return [r.id for r in (*self.hard_block_rules, *self.soft_warning_rules)]

    def with_rule(self, rule: Rule, *, before: str | None = None) -> ContentGuard:
        if rule.id in self.rule_ids():
            raise ValueError(f"Duplicate rule id: {rule.id}")

        if rule.tier == HARD_BLOCK:
            rules = self.hard_block_rules
        elif rule.tier == SOFT_WARNING:
            rules = self.soft_warning_rules
        else:
            raise ValueError(f"Unknown rule tier: {rule.tier}")

        if before is None:
            updated = (*rules, rule)
        else:
            ids = [r.id for r in rules]
            if before not in ids:
                raise ValueError(f"Unknown rule id in {rule.tier}: {before}")
            idx = ids.index(before)
            updated = (*rules[:idx], rule, *rules[idx:])

        if rule.tier == HARD_BLOCK:
            return replace(self, hard_block_rules=updated)
        return replace(self, soft_warning_rules=updated)


@lru_cache
def default_guard() -> ContentGuard:
    return ContentGuard.for_locale(PT_BR)


def evaluate(text: str) -> GuardResult:
    return default_guard().evaluate(text)


def evaluate_or_block(text: str, guard: ContentGuard | None = None) -> GuardResult:
    """Evaluate, blocking the send if the guard itself fails.

    Only the exception type is logged; the message text never reaches the logs.
    """
    try:
        result = (guard or default_guard()).evaluate(text)
    except Exception as e:  # noqa: BLE001 - fail closed
        logger.error(
            "content guard failed: %s", type(e).__name__, extra={"event": "guard_error"}
        )
        locale = guard.locale if guard is not None else PT_BR
        return GuardBlocked(message=locale.guard_error_message, reason=GUARD_ERROR_REASON)

    if isinstance(result, GuardBlocked):
        logger.info(
            "message blocked",
            extra={"event": "guard_blocked", "rule_id": result.rule_id, "reason": result.reason},
        )
    elif isinstance(result, GuardWarning):
        logger.debug("message warned", extra={"event": "guard_warning", "rule_id": result.rule_id})
    return result
