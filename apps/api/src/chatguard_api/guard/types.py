from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal

Tier = Literal["HARD_BLOCK", "SOFT_WARNING"]
Level = Literal["ok", "warning", "blocked"]

HARD_BLOCK: Tier = "HARD_BLOCK"
SOFT_WARNING: Tier = "SOFT_WARNING"


@dataclass(frozen=True)
class Rule:
    """One detector in a tier.

    `reason` is the machine-readable code reported on a block (e.g. "CPF detected").
    For soft warnings it holds the human label interpolated into `message`.
    """

    id: str
    tier: Tier
    matcher: Callable[[str], bool]
    reason: str
    message: str

    def matches(self, text: str) -> bool:
        return bool(self.matcher(text))


@dataclass(frozen=True)
class GuardOk:
    @property
    def level(self) -> Level:
        return "ok"

    def to_dict(self) -> dict[str, Any]:
        return {"level": self.level}


@dataclass(frozen=True)
class GuardWarning:
    message: str
    rule_id: str | None = None

    @property
    def level(self) -> Level:
        return "warning"

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"level": self.level, "message": self.message}
        if self.rule_id:
            out["rule_id"] = self.rule_id
        return out


@dataclass(frozen=True)
class GuardBlocked:
    message: str
    reason: str
    rule_id: str | None = None

    @property
    def level(self) -> Level:
        return "blocked"

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "level": self.level,
            "message": self.message,
            "reason": self.reason,
        }
        if self.rule_id:
            out["rule_id"] = self.rule_id
        return out


GuardResult = GuardOk | GuardWarning | GuardBlocked

OK = GuardOk()
