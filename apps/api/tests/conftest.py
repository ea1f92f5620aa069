import pytest


@pytest.fixture(autouse=True)
def _isolated_db(tmp_path, monkeypatch):
    monkeypatch.setenv("CHATGUARD_DB_PATH", str(tmp_path / "test.db"))
    for name in ("CHATGUARD_API_KEY", "CHATGUARD_ADMIN_API_KEY", "CHATGUARD_MAX_MESSAGE_CHARS"):
        monkeypatch.delenv(name, raising=False)

    from chatguard_api.main import reset_admin_guard_state_for_tests

    reset_admin_guard_state_for_tests()
    yield
    reset_admin_guard_state_for_tests()
