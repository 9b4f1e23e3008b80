from panelpress.config import AUTOSAVE_DELAY_MS, NEW_ENTRY, POLL_INTERVAL_MS, Config, get_config, log_level


def test_config_singleton():
    """get_config should return the same singleton instance across calls."""

    c1 = get_config()
    c2 = get_config()
    assert c1 is c2
    assert isinstance(c1, Config)


def test_cadence_defaults():
    assert POLL_INTERVAL_MS == Config.POLL_INTERVAL_MS == 400
    assert AUTOSAVE_DELAY_MS == Config.AUTOSAVE_DELAY_MS == 3000
    assert Config.DEFAULT_STYLE == "nano-banana"
    assert NEW_ENTRY == "new"


def test_list_defaults():
    assert Config.LIST_LIMIT == 100
    assert Config.LIST_OFFSET == 0
    assert Config.PREVIEW_CHARS == 50


def test_log_level_env_override(monkeypatch):
    monkeypatch.delenv(Config.LOG_ENV_VAR, raising=False)
    assert log_level() == "INFO"
    monkeypatch.setenv(Config.LOG_ENV_VAR, "debug")
    assert log_level() == "DEBUG"
