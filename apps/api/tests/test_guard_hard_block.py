import time

import pytest

from chatguard_api.guard import PT_BR, evaluate
from chatguard_api.guard.hard_block import build_hard_block_rules


def _reason(text: str) -> str | None:
    result = evaluate(text)
    assert result.level == "blocked", result
    return result.reason


def test_hard_block_rules_are_in_priority_order():
    ids = [r.id for r in build_hard_block_rules(PT_BR)]
    assert ids == ["cpf", "cns", "phone", "email", "address", "medical_record"]


@pytest.mark.parametrize(
    "text",
    [
        "123.456.789-01",
        "12345678901",
        "123 456 789 01",
        "cpf: 123.456.78901",
        "Paciente João Silva, CPF 123.456.789-01, segue com dor abdominal",
    ],
)
def test_cpf_is_blocked_with_or_without_separators(text):
    assert _reason(text) == "CPF detected"


@pytest.mark.parametrize(
    "suffix",
    [
        "",
        " e-mail joao@hospital.com.br",
        " tel (11) 91234-5678",
        " CNS 898001160660005",
        " prontuário 882910",
    ],
)
def test_cpf_wins_regardless_of_other_identifiers(suffix):
    assert _reason("CPF 123.456.789-01" + suffix) == "CPF detected"


def test_cpf_checked_before_email():
    result = evaluate("contato joao@hospital.com.br, cpf 123.456.789-01")
    assert result.reason == "CPF detected"


def test_cns_fifteen_digits_blocks():
    assert _reason("cartão 898001160660005") == "CNS detected"


def test_cns_fourteen_digits_is_not_cns():
    result = evaluate("cartão 89800116066000")
    assert result.level == "warning"
    assert result.rule_id == "long_digit_sequence"


@pytest.mark.parametrize(
    "text",
    [
        "meu telefone é (11) 91234-5678 para contato",
        "ligar 11 3456-7890",
        "whats +55 11 91234-5678",
        "+55 (21) 98765.4321",
    ],
)
def test_phone_is_blocked(text):
    assert _reason(text) == "Phone detected"


def test_email_is_blocked():
    assert _reason("mandar exames para joao.silva@hospital.com.br") == "Email detected"


def test_email_requires_tld():
    result = evaluate("usuario@localhost")
    assert result.level != "blocked"


@pytest.mark.parametrize(
    "text",
    [
        "mora na rua das flores, CEP 01310-100, nº 1000",
        "CEP 01310-100 n° 55",
        "CEP 01310100 no 12",
        "CEP 01310-100 1000",
    ],
)
def test_cep_with_house_number_is_blocked(text):
    assert _reason(text) == "Address detected"


def test_cep_alone_is_not_blocked():
    result = evaluate("CEP 01310-100, apto")
    assert result.level != "blocked"


@pytest.mark.parametrize(
    "text",
    [
        "prontuário 882910 do paciente necessita revisão",
        "PRONTUARIO: 12345",
        "Prontuário nº 123456",
        "registro 99887766 na recepção",
        "registro nº 55555",
        "pront. 123456",
    ],
)
def test_medical_record_number_is_blocked(text):
    assert _reason(text) == "Medical record detected"


def test_medical_record_needs_five_digits():
    result = evaluate("prontuário 1234")
    assert result.level == "warning"
    assert result.rule_id == "sensitive_keyword"


@pytest.mark.parametrize(
    "text",
    [
        "CPF12345678901",
        "cpf 123.456.789-01a",
        "x123.456.789-01y",
        "cpf:12345678901.",
    ],
)
def test_cpf_glued_to_letters_is_blocked(text):
    assert _reason(text) == "CPF detected"


@pytest.mark.parametrize(
    "text",
    [
        "CNS898001160660005",
        "cartao 898001160660005x",
        "cns#898001160660005",
    ],
)
def test_cns_glued_to_letters_is_blocked(text):
    assert _reason(text) == "CNS detected"


def test_glued_fourteen_digits_still_only_warn():
    result = evaluate("CNS89800116066000x")
    assert result.level == "warning"
    assert result.rule_id == "long_digit_sequence"


def test_twelve_digit_run_is_not_a_cpf():
    result = evaluate("lote 123456789012")
    assert result.level == "warning"
    assert result.rule_id == "long_digit_sequence"


@pytest.mark.parametrize(
    "text",
    [
        "CEP ٠١٣١٠-١٠٠ ١٢",
        "CEP ０１３１０-１００ １２",
    ],
)
def test_cep_with_non_ascii_digits_is_not_an_address(text):
    assert evaluate(text).level == "ok"


def test_medical_record_with_non_ascii_digits_only_warns():
    result = evaluate("prontuário ١٢٣٤٥٦")
    assert result.level == "warning"
    assert result.rule_id == "sensitive_keyword"


def test_long_dotted_text_is_classified_quickly():
    started = time.monotonic()
    result = evaluate("a." * 50_000)
    assert result.level == "ok"
    assert time.monotonic() - started < 2.0
