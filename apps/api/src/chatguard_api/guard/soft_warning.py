from __future__ import annotations

import re
from collections.abc import Callable

from .locale import LocaleProfile, normalize_text
from .types import SOFT_WARNING, Rule

_FULL_DATE_RE = re.compile(r"\b\d{2}[/-]\d{2}[/-]\d{4}\b", re.ASCII)

_LONG_DIGIT_RUN_RE = re.compile(r"(?<!\d)\d{8,}(?!\d)", re.ASCII)


def _keyword_re(words: tuple[str, ...], *, whole_word: bool) -> re.Pattern[str]:
    alternation = "|".join(re.escape(w) for w in words)
    if whole_word:
        return re.compile(rf"\b(?:{alternation})\b", re.IGNORECASE)
    return re.compile(rf"(?:{alternation})", re.IGNORECASE)


def _date_with_patient(profile: LocaleProfile) -> Callable[[str], bool]:
    # Either order: "12/03/1980 ... paciente" or "paciente ... 12/03/1980".
    patient_re = _keyword_re(profile.patient_keywords, whole_word=False)

    def _matcher(text: str) -> bool:
        if _FULL_DATE_RE.search(text) is None:
            return False
        return patient_re.search(normalize_text(text)) is not None

    return _matcher


def _long_digit_sequence(text: str) -> bool:
    return _LONG_DIGIT_RUN_RE.search(text) is not None


def _sensitive_keyword(profile: LocaleProfile) -> Callable[[str], bool]:
    keyword_re = _keyword_re(profile.sensitive_keywords, whole_word=True)

    def _matcher(text: str) -> bool:
        return keyword_re.search(normalize_text(text)) is not None

    return _matcher


def _name_age_city(profile: LocaleProfile) -> Callable[[str], bool]:
    """Two capitalized words, later an age ("34 anos"), later another capitalized word.

    Best-effort heuristic: any capitalized sentence start can satisfy the name part and
    lowercase names never do.
    """
    upper, lower = profile.upper_letters, profile.lower_letters
    name_re = re.compile(rf"\b[{upper}][{lower}]+\s+[{upper}][{lower}]+\b")
    units = "|".join(re.escape(u) for u in sorted(profile.age_units, key=len, reverse=True))
    age_re = re.compile(rf"\d{{1,3}}\s*(?:{units})", re.IGNORECASE)
    place_re = re.compile(rf"\b[{upper}][{lower}]+\b")

    # Each part is searched from where the previous one ended.
    def _matcher(text: str) -> bool:
        name = name_re.search(text)
        if name is None:
            return False
        age = age_re.search(text, name.end())
        if age is None:
            return False
        return place_re.search(text, age.end()) is not None

    return _matcher


def build_soft_warning_rules(profile: LocaleProfile) -> tuple[Rule, ...]:
    """Heuristics correlated with identifying disclosures, in evaluation order."""
    table: tuple[tuple[str, Callable[[str], bool]], ...] = (
        ("date_with_patient", _date_with_patient(profile)),
        ("long_digit_sequence", _long_digit_sequence),
        ("sensitive_keyword", _sensitive_keyword(profile)),
        ("name_age_city", _name_age_city(profile)),
    )
    return tuple(
        Rule(
            id=rule_id,
            tier=SOFT_WARNING,
            matcher=matcher,
            reason=profile.warning_label(rule_id),
            message=profile.warning_message(rule_id),
        )
        for rule_id, matcher in table
    )
