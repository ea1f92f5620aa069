from __future__ import annotations

import re

from .locale import LocaleProfile, normalize_text
from .types import HARD_BLOCK, Rule

# Brazilian identifier formats. Digit runs are delimited by (?<!\d) / (?!\d) rather than
# \b, so "CPF12345678901" and "898001160660005x" are still caught. re.ASCII limits `\d`
# to ASCII digits.
#
# Every pattern is used through `.search()`, which starts from the beginning of the
# string on each call; compiled patterns carry no scan position between calls.

# 3+3+3 digits plus 2 check digits; `.`, `-` or whitespace separators, all optional.
_CPF_RE = re.compile(r"(?<!\d)\d{3}[.\s-]?\d{3}[.\s-]?\d{3}[.\s-]?\d{2}(?!\d)", re.ASCII)

# Cartão Nacional de Saúde: exactly 15 digits.
_CNS_RE = re.compile(r"(?<!\d)\d{15}(?!\d)", re.ASCII)

# Optional +55, optional (DD) area code, 4-5 digit prefix, 4 digit suffix.
# The leading lookbehind keeps longer digit runs (14 digits) from matching a tail.
_PHONE_RE = re.compile(
    r"(?<!\d)(?:\+55\s?)?\(?\d{2}\)?[\s.-]?\d{4,5}[-.\s]?\d{4}(?!\d)",
    re.ASCII,
)

_EMAIL_RE = re.compile(
    r"(?<![A-Za-z0-9._%+-])[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b",
    re.ASCII,
)

# CEP (NNNNN-NNN) followed by a house number: "nº 120", "n° 120", "no 120", ", 120"
# or a bare trailing number.
_CEP_WITH_NUMBER_RE = re.compile(
    r"(?<!\d)\d{5}[-.\s]?\d{3}(?:\s*,\s*|\s+)(?:n[º°o]?\.?\s*)?\d+",
    re.IGNORECASE | re.ASCII,
)


def _medical_record_re(profile: LocaleProfile) -> re.Pattern[str]:
    keywords = "|".join(re.escape(k) for k in profile.record_keywords)
    # Runs against normalized text, so "nº" has already become "no".
    return re.compile(
        rf"\b(?:{keywords})(?:\s*n[o°]?\.?)?\s*(?:[:#]\s*)?\d{{5,}}",
        re.IGNORECASE | re.ASCII,
    )


def _matches_cpf(text: str) -> bool:
    return _CPF_RE.search(text) is not None


def _matches_cns(text: str) -> bool:
    return _CNS_RE.search(text) is not None


def _matches_phone(text: str) -> bool:
    return _PHONE_RE.search(text) is not None


def _matches_email(text: str) -> bool:
    return _EMAIL_RE.search(text) is not None


def _matches_address(text: str) -> bool:
    return _CEP_WITH_NUMBER_RE.search(text) is not None


def build_hard_block_rules(profile: LocaleProfile) -> tuple[Rule, ...]:
    """Unambiguous identifiers, in priority order (first match wins)."""
    record_re = _medical_record_re(profile)

    def _matches_medical_record(text: str) -> bool:
        return record_re.search(normalize_text(text)) is not None

    table = (
        ("cpf", _matches_cpf, "CPF detected"),
        ("cns", _matches_cns, "CNS detected"),
        ("phone", _matches_phone, "Phone detected"),
        ("email", _matches_email, "Email detected"),
        ("address", _matches_address, "Address detected"),
        ("medical_record", _matches_medical_record, "Medical record detected"),
    )
    return tuple(
        Rule(
            id=rule_id,
            tier=HARD_BLOCK,
            matcher=matcher,
            reason=reason,
            message=profile.block_message(rule_id),
        )
        for rule_id, matcher, reason in table
    )
