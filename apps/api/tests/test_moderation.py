import pytest

from chatguard_api.moderation import (
    EmptyMessageError,
    MessageTooLongError,
    check_outgoing,
    find_banned_word,
    max_message_chars,
)


def test_find_banned_word_is_case_insensitive_substring():
    assert find_banned_word("Plantão VIP disponível", ["vip"]) == "vip"
    assert find_banned_word("nada aqui", ["vip", "spam"]) is None


def test_find_banned_word_returns_first_in_list_order_and_ignores_blanks():
    assert find_banned_word("spam vip", ["", "  ", "vip", "spam"]) == "vip"


@pytest.mark.parametrize("text", ["", "   ", "\n"])
def test_check_outgoing_rejects_empty(text):
    with pytest.raises(EmptyMessageError):
        check_outgoing(text)


def test_check_outgoing_enforces_length_bound():
    with pytest.raises(MessageTooLongError) as exc:
        check_outgoing("x" * 11, max_chars=10)
    assert exc.value.length == 11
    assert exc.value.max_chars == 10


def test_check_outgoing_blocks_banned_word():
    result = check_outgoing("oferta plantão vip hoje", banned_words=["Plantão VIP"])
    assert result.level == "blocked"
    assert result.reason == "Banned word"
    assert result.message == 'Mensagem contém palavra bloqueada: "Plantão VIP"'


def test_identifier_takes_precedence_over_banned_word():
    result = check_outgoing("vip CPF 123.456.789-01", banned_words=["vip"])
    assert result.reason == "CPF detected"


def test_check_outgoing_passes_warning_through():
    result = check_outgoing("paciente no leito 3", banned_words=["vip"])
    assert result.level == "warning"


def test_check_outgoing_allows_clean_message():
    assert check_outgoing("dor torácica há 2h, ECG normal").level == "ok"


def test_max_message_chars_from_env(monkeypatch):
    assert max_message_chars() == 4000
    monkeypatch.setenv("CHATGUARD_MAX_MESSAGE_CHARS", "250")
    assert max_message_chars() == 250
    monkeypatch.setenv("CHATGUARD_MAX_MESSAGE_CHARS", "not-a-number")
    assert max_message_chars() == 4000
    monkeypatch.setenv("CHATGUARD_MAX_MESSAGE_CHARS", "0")
    assert max_message_chars() == 1
