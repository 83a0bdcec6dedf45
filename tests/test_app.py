import pytest

from bbw import app as app_module
from bbw.app import BbwApp, SetupCancelled
from bbw.bitwarden import BitwardenCLI, BitwardenError
from bbw.config import Config, load_config, save_config

from conftest import FakeScreen

UNLOCK = ["unlock", "--passwordenv", "BW_PASSWORD", "--raw"]


@pytest.fixture
def config_path(tmp_path):
    return str(tmp_path / "config.yaml")


def test_valid_cached_session_is_kept(fake_bw, config_path):
    save_config(Config("me@example.com", "pw", "cached"), config_path)
    fake_bw.add(["status"], {"status": "unlocked"})
    app = BbwApp(config_path)

    app.prepare_session()

    assert app.bw_cli.session == "cached"
    assert not app.needs_setup
    assert fake_bw.args_called() == [["status"]]


def test_expired_session_is_unlocked_and_saved(fake_bw, config_path):
    save_config(Config("me@example.com", "pw", "expired"), config_path)
    fake_bw.add(["status"], {"status": "locked"})
    fake_bw.add(UNLOCK, "fresh\n")
    app = BbwApp(config_path)

    app.prepare_session()

    assert app.bw_cli.session == "fresh"
    assert load_config(config_path).session == "fresh"
    assert fake_bw.calls[-1][1]["env"]["BW_PASSWORD"] == "pw"


def test_unlock_failure_propagates(fake_bw, config_path):
    save_config(Config("me@example.com", "wrong", ""), config_path)
    fake_bw.add(UNLOCK, returncode=1, stderr="Invalid master password.")

    with pytest.raises(BitwardenError, match="unlock failed"):
        BbwApp(config_path).prepare_session()


def test_missing_password_requires_setup(fake_bw, config_path):
    app = BbwApp(config_path)

    app.prepare_session()

    assert app.needs_setup
    assert fake_bw.calls == []


def test_first_time_setup_logs_in(fake_bw, config_path):
    fake_bw.add(["status"], {"status": "unauthenticated", "userEmail": None})
    fake_bw.add(["login", "me@example.com", "--passwordenv", "BW_PASSWORD", "--raw"], "new-session\n")
    app = BbwApp(config_path)
    app.prepare_session()
    screen = FakeScreen(inputs=["me@example.com", "master pw"])

    app.first_time_setup(screen)

    assert screen.prompts[1] == ("Enter your master password", "*")
    assert load_config(config_path) == Config("me@example.com", "master pw", "new-session")
    assert app.bw_cli.session == "new-session"
    assert not app.needs_setup


def test_first_time_setup_unlocks_known_account(fake_bw, config_path):
    fake_bw.add(["status"], {"status": "locked", "userEmail": "me@example.com"})
    fake_bw.add(UNLOCK, "unlocked-session\n")
    app = BbwApp(config_path)
    app.prepare_session()

    app.first_time_setup(FakeScreen(inputs=["me@example.com", "master pw"]))

    assert ["login", "me@example.com", "--passwordenv", "BW_PASSWORD", "--raw"] not in fake_bw.args_called()
    assert load_config(config_path).session == "unlocked-session"


def test_first_time_setup_cancel(fake_bw, config_path):
    app = BbwApp(config_path)
    app.prepare_session()

    with pytest.raises(SetupCancelled):
        app.first_time_setup(FakeScreen(inputs=["me@example.com", None]))
    assert load_config(config_path) == Config()


def test_run_without_bw_prints_install_hint(monkeypatch, capsys, config_path):
    monkeypatch.setattr(BitwardenCLI, "check_cli_available", lambda self: False)

    assert BbwApp(config_path).run() == 1
    out = capsys.readouterr().out
    assert "Bitwarden CLI (bw) is not available" in out
    assert "npm install -g @bitwarden/cli" in out


def test_run_starts_ui_with_prepared_session(monkeypatch, fake_bw, config_path):
    save_config(Config("me@example.com", "pw", "cached"), config_path)
    fake_bw.add(["status"], {"status": "unlocked"})
    monkeypatch.setattr(BitwardenCLI, "check_cli_available", lambda self: True)
    monkeypatch.setattr(app_module.locale, "setlocale", lambda *args: None)
    monkeypatch.setenv("ESCDELAY", "25")
    started = []
    monkeypatch.setattr(app_module.curses, "wrapper", started.append)
    app = BbwApp(config_path)

    assert app.run() == 0
    assert started == [app._run_ui]
    assert app.bw_cli.session == "cached"


def test_run_reports_cancelled_setup(monkeypatch, fake_bw, config_path):
    def cancel(func):
        raise SetupCancelled()

    monkeypatch.setattr(BitwardenCLI, "check_cli_available", lambda self: True)
    monkeypatch.setattr(app_module.locale, "setlocale", lambda *args: None)
    monkeypatch.setenv("ESCDELAY", "25")
    monkeypatch.setattr(app_module.curses, "wrapper", cancel)

    assert BbwApp(config_path).run() == 1
