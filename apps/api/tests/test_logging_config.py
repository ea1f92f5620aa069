import json
import logging

from chatguard_api.logging_config import JsonFormatter


def test_json_formatter_emits_structured_fields():
    record = logging.LogRecord(
        name="chatguard_api.guard.engine",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="message blocked",
        args=(),
        exc_info=None,
    )
    record.event = "guard_blocked"
    record.rule_id = "cpf"
    record.reason = "CPF detected"

    payload = json.loads(JsonFormatter().format(record))
    assert payload["level"] == "INFO"
    assert payload["logger"] == "chatguard_api.guard.engine"
    assert payload["msg"] == "message blocked"
    assert payload["event"] == "guard_blocked"
    assert payload["rule_id"] == "cpf"
    assert payload["reason"] == "CPF detected"
    assert "endpoint" not in payload
