import logging

import config


def test_session_key_wins_over_environment(monkeypatch):
    monkeypatch.setattr(config, "OPENAI_API_KEY", "sk-env")
    assert config.get_api_key({"openai_api_key": " sk-session "}) == "sk-session"
    assert config.get_api_key({"openai_api_key": ""}) == "sk-env"
    assert config.get_api_key({}) == "sk-env"


def test_setup_logging_uses_level(monkeypatch):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    config.setup_logging("debug")
    assert calls[0]["level"] == "DEBUG"
    assert calls[0]["format"] == config.LOG_FORMAT
