# tests/test_config.py
import pytest

import config
from errors import InvalidConfiguration, InvalidCredential


@pytest.fixture
def inputs_env(monkeypatch, private_pem):
    monkeypatch.setenv("INPUT_APPLICATION_PRIVATE_KEY", private_pem)
    monkeypatch.setenv("INPUT_APPLICATION_ID", "123456")
    monkeypatch.setenv("GITHUB_REPOSITORY", "acme/widgets")
    return monkeypatch


def test_defaults(inputs_env, private_pem):
    inputs = config.load_inputs()

    assert inputs.private_key == private_pem.strip()
    assert inputs.application_id == "123456"
    assert inputs.repository == "acme/widgets"
    assert inputs.organization is None
    assert inputs.permissions == {"contents": "read"}
    assert inputs.revoke_token is True
    assert inputs.ignore_environment_proxy is False
    assert inputs.timeout_ms == 5000
    assert inputs.transport().base_api_url == "https://api.github.com"


def test_all_inputs(inputs_env):
    inputs_env.setenv("INPUT_ORGANIZATION", "acme")
    inputs_env.setenv("INPUT_PERMISSIONS", "contents:write,issues:read")
    inputs_env.setenv("INPUT_GITHUB_API_BASE_URL", "https://ghe.example.com/api/v3")
    inputs_env.setenv("INPUT_HTTPS_PROXY", "http://proxy:3128")
    inputs_env.setenv("INPUT_REVOKE_TOKEN", "false")
    inputs_env.setenv("HTTP_TIMEOUT_MS", "2500")

    inputs = config.load_inputs()
    transport = inputs.transport()

    assert inputs.organization == "acme"
    assert inputs.permissions == {"contents": "write", "issues": "read"}
    assert inputs.revoke_token is False
    assert transport.base_api_url == "https://ghe.example.com/api/v3"
    assert transport.proxies["https"] == "http://proxy:3128"
    assert transport.timeout_ms == 2500


def test_private_key_is_masked(inputs_env, private_pem, capsys):
    config.load_inputs()
    assert "::add-mask::-----BEGIN" in capsys.readouterr().out


def test_private_key_not_in_repr(inputs_env):
    assert "PRIVATE KEY" not in repr(config.load_inputs())


@pytest.mark.parametrize("name", ["INPUT_APPLICATION_PRIVATE_KEY", "INPUT_APPLICATION_ID"])
def test_missing_credentials(inputs_env, name):
    inputs_env.setenv(name, "   ")
    with pytest.raises(InvalidCredential):
        config.load_inputs()


@pytest.mark.parametrize("app_id", ["abc", "12a", "-1", "1.0"])
def test_application_id_must_be_numeric(inputs_env, app_id):
    inputs_env.setenv("INPUT_APPLICATION_ID", app_id)
    with pytest.raises(InvalidConfiguration):
        config.load_inputs()


def test_malformed_proxy(inputs_env):
    inputs_env.setenv("INPUT_HTTPS_PROXY", "proxy:3128")
    with pytest.raises(InvalidConfiguration):
        config.load_inputs()


def test_malformed_timeout(inputs_env):
    inputs_env.setenv("HTTP_TIMEOUT_MS", "soon")
    with pytest.raises(InvalidConfiguration):
        config.load_inputs()


def test_revocation_settings_need_no_credentials(monkeypatch):
    monkeypatch.setenv("INPUT_REVOKE_TOKEN", "false")
    settings = config.load_revocation_settings()
    assert settings.enabled is False
    assert settings.transport.base_api_url == "https://api.github.com"


@pytest.mark.parametrize("raw,expected", [(None, False), ("1", True), ("yes", True), ("ON", True), ("0", False)])
def test_bool_env(monkeypatch, raw, expected):
    if raw is not None:
        monkeypatch.setenv("SOME_FLAG", raw)
    assert config.bool_env("SOME_FLAG") is expected
