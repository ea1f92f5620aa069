from __future__ import annotations

import unicodedata
from collections.abc import Mapping
from dataclasses import dataclass


@dataclass(frozen=True)
class LocaleProfile:
    """Locale-specific literals consumed by the rule builders.

    Keyword lists are stored in their normalized (accent-free, lowercase) form because
    keyword detectors run against `normalize_text(text)`.
    """

    name: str
    sensitive_keywords: tuple[str, ...]
    patient_keywords: tuple[str, ...]
    record_keywords: tuple[str, ...]
    age_units: tuple[str, ...]
    upper_letters: str
    lower_letters: str
    warning_template: str
    block_messages: Mapping[str, str]
    warning_labels: Mapping[str, str]
    guard_error_message: str
    banned_word_template: str

    def block_message(self, rule_id: str) -> str:
        return self.block_messages.get(rule_id) or "Remova identificadores."

    def warning_message(self, rule_id: str) -> str:
        return self.warning_template.format(label=self.warning_label(rule_id))

    def warning_label(self, rule_id: str) -> str:
        return self.warning_labels.get(rule_id) or rule_id


def normalize_text(text: str) -> str:
    # Strip accents so keyword patterns stay ASCII-only ("prontuário" -> "prontuario").
    # NFKD also folds the ordinal indicators: "nº" -> "no", "1ª" -> "1a".
    text = text.replace("\u2019", "'").replace("\u2018", "'")
    text = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in text if not unicodedata.combining(ch))


PT_BR = LocaleProfile(
    name="pt-BR",
    sensitive_keywords=("prontuario", "leito", "endereco", "telefone", "cpf", "cns"),
    patient_keywords=("paciente",),
    record_keywords=("prontuario", "pront.", "registro"),
    age_units=("anos", "ano"),
    upper_letters="A-ZÁÀÃÂÉÊÍÓÔÕÚÇ",
    lower_letters="a-záàãâéêíóôõúç",
    warning_template="Atenção: isso pode identificar paciente ({label}). Revise antes de enviar.",
    block_messages={
        "cpf": "Remova identificadores (CPF detectado).",
        "cns": "Remova identificadores (CNS detectado).",
        "phone": "Remova identificadores (telefone detectado).",
        "email": "Remova identificadores (e-mail detectado).",
        "address": "Remova identificadores (CEP + número detectado).",
        "medical_record": "Remova identificadores (nº prontuário detectado).",
    },
    warning_labels={
        "date_with_patient": "data completa com paciente",
        "long_digit_sequence": "sequência numérica longa",
        "sensitive_keyword": "palavra-chave sensível",
        "name_age_city": "nome + idade + cidade",
    },
    guard_error_message=(
        "Não foi possível verificar a mensagem. Envio bloqueado; tente novamente."
    ),
    banned_word_template='Mensagem contém palavra bloqueada: "{word}"',
)
