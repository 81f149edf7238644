import logging

import pytest

from clientgate import env
from clientgate.constants import LOGGER

_ENV_KEYS = (
    "CLIENTGATE_REGISTRY_URL",
    "CLIENTGATE_REGISTRY_PATH",
    "CLIENTGATE_REGISTRY_TIMEOUT",
    "CLIENTGATE_REGISTRY_MAX_RETRIES",
    "CLIENTGATE_LOOPBACK_ANY_PORT",
    "CLIENTGATE_REDIRECT_ERRORS_TO_DEFAULT",
    "CLIENTGATE_DEBUG",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.mark.parametrize("value", ["1", "true", "YES", " on "])
def test_is_truthy(value: str) -> None:
    assert env.is_truthy(value) is True


@pytest.mark.parametrize("value", [None, "", "0", "false", "off", "maybe"])
def test_is_not_truthy(value) -> None:
    assert env.is_truthy(value) is False


def test_validate_env_requires_registry() -> None:
    with pytest.raises(RuntimeError, match="CLIENTGATE_REGISTRY_URL"):
        env.validate_env()


def test_validate_env_accepts_path(monkeypatch) -> None:
    monkeypatch.setenv("CLIENTGATE_REGISTRY_PATH", "clients.json")

    env.validate_env()


@pytest.mark.parametrize("url", ["registry.internal", "ftp://registry.internal", "https://"])
def test_validate_env_rejects_bad_url(monkeypatch, url: str) -> None:
    monkeypatch.setenv("CLIENTGATE_REGISTRY_URL", url)

    with pytest.raises(RuntimeError):
        env.validate_env()


def test_validate_env_warns_on_plain_http(monkeypatch, caplog) -> None:
    monkeypatch.setenv("CLIENTGATE_REGISTRY_URL", "http://registry.internal")

    with caplog.at_level(logging.WARNING, logger="clientgate"):
        env.validate_env()

    assert "plain http" in caplog.text


def test_validate_env_rejects_bad_retries(monkeypatch) -> None:
    monkeypatch.setenv("CLIENTGATE_REGISTRY_PATH", "clients.json")
    monkeypatch.setenv("CLIENTGATE_REGISTRY_MAX_RETRIES", "many")

    with pytest.raises(RuntimeError, match="integer"):
        env.validate_env()


def test_validate_env_rejects_zero_timeout(monkeypatch) -> None:
    monkeypatch.setenv("CLIENTGATE_REGISTRY_PATH", "clients.json")
    monkeypatch.setenv("CLIENTGATE_REGISTRY_TIMEOUT", "0")

    with pytest.raises(RuntimeError, match="positive"):
        env.validate_env()


def test_load_registry_settings(monkeypatch) -> None:
    monkeypatch.setenv("CLIENTGATE_REGISTRY_URL", " https://registry.internal ")
    monkeypatch.setenv("CLIENTGATE_REGISTRY_TIMEOUT", "2.5")
    monkeypatch.setenv("CLIENTGATE_REGISTRY_MAX_RETRIES", "4")

    settings = env.load_registry_settings()

    assert settings == env.RegistrySettings(
        url="https://registry.internal",
        path=None,
        timeout=2.5,
        max_retries=4,
    )


def test_load_callback_policy_defaults_strict() -> None:
    policy = env.load_callback_policy()

    assert policy.loopback_any_port is False
    assert policy.redirect_errors_to_default is False


def test_load_callback_policy_from_env(monkeypatch) -> None:
    monkeypatch.setenv("CLIENTGATE_LOOPBACK_ANY_PORT", "1")
    monkeypatch.setenv("CLIENTGATE_REDIRECT_ERRORS_TO_DEFAULT", "true")

    policy = env.load_callback_policy()

    assert policy.loopback_any_port is True
    assert policy.redirect_errors_to_default is True


def test_load_env_reads_dotenv(tmp_path, monkeypatch) -> None:
    # load_dotenv writes os.environ directly; register the key so it is restored.
    monkeypatch.setenv("CLIENTGATE_REGISTRY_PATH", "placeholder.json")
    dotenv_path = tmp_path / ".env"
    dotenv_path.write_text("CLIENTGATE_REGISTRY_PATH=from-dotenv.json\n", encoding="utf-8")

    env.load_env(dotenv_path)

    assert env.load_registry_settings().path == "from-dotenv.json"


def test_load_env_missing_file(tmp_path) -> None:
    env.load_env(tmp_path / "missing.env")


def test_setup_logging_debug(monkeypatch) -> None:
    monkeypatch.setenv("CLIENTGATE_DEBUG", "1")
    previous = LOGGER.level

    try:
        assert env.setup_logging() is True
        assert LOGGER.level == logging.INFO
    finally:
        LOGGER.setLevel(previous)


def test_setup_logging_default_off() -> None:
    assert env.setup_logging() is False
