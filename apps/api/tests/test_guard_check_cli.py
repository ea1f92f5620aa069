import io
import json
import logging

import pytest

from chatguard_api.scripts import guard_check


@pytest.fixture(autouse=True)
def _restore_root_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_cli_exit_code_reflects_worst_result(capsys):
    code = guard_check.main(["dor torácica", "paciente no leito 2", "CPF 123.456.789-01"])
    assert code == guard_check.EXIT_BLOCKED

    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "ok"
    assert lines[1].startswith("warning\tsensitive_keyword\t")
    assert lines[2].startswith("blocked\tCPF detected\t")


def test_cli_warning_only(capsys):
    assert guard_check.main(["telefone"]) == guard_check.EXIT_WARNING


def test_cli_json_output(capsys):
    assert guard_check.main(["--json", "ECG normal"]) == guard_check.EXIT_OK
    assert json.loads(capsys.readouterr().out) == {"level": "ok"}


def test_cli_reads_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("ligar (11) 91234-5678\nECG normal\n"))
    assert guard_check.main(["--stdin", "--json"]) == guard_check.EXIT_BLOCKED

    rows = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert [r["level"] for r in rows] == ["blocked", "ok"]
    assert rows[0]["reason"] == "Phone detected"
