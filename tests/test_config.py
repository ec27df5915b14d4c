"""
Tests de configuración EET
"""
import pytest

from eet_client.config import EetConfig, get_eet_config


def test_default_is_playground(eet_config):
    assert eet_config.env == "playground"
    assert eet_config.playground is True
    assert eet_config.endpoint == "https://pg.eet.cz:443/eet/services/EETServiceSOAP/v3"
    assert eet_config.timeout == 2.0
    assert eet_config.offline is False
    assert eet_config.measure_response_time is False
    assert eet_config.user_agent is None


def test_production_endpoint(eet_config):
    config = EetConfig(EetConfig.ENV_PRODUCTION)
    assert config.playground is False
    assert config.endpoint == "https://prod.eet.cz:443/eet/services/EETServiceSOAP/v3"


def test_invalid_env():
    with pytest.raises(ValueError, match="Ambiente inválido"):
        EetConfig("test")


def test_env_overrides(eet_config, monkeypatch):
    monkeypatch.setenv("EET_PLAYGROUND_URL", "https://localhost:8443/eet")
    monkeypatch.setenv("EET_TIMEOUT", "5")
    monkeypatch.setenv("EET_OFFLINE", "true")
    monkeypatch.setenv("EET_USER_AGENT", "pokladna/1.0")

    config = EetConfig()

    assert config.endpoint == "https://localhost:8443/eet"
    assert config.timeout == 5.0
    assert config.offline is True
    assert config.user_agent == "pokladna/1.0"


def test_explicit_arguments_win_over_env(eet_config, monkeypatch):
    monkeypatch.setenv("EET_OFFLINE", "true")
    monkeypatch.setenv("EET_TIMEOUT", "5")

    config = EetConfig(offline=False, timeout=1.5)

    assert config.offline is False
    assert config.timeout == 1.5


def test_invalid_timeout(eet_config):
    with pytest.raises(ValueError):
        EetConfig(timeout=0)


def test_get_eet_config_reads_env(eet_config, monkeypatch):
    monkeypatch.setenv("EET_ENV", "production")
    assert get_eet_config().env == "production"
    assert get_eet_config("playground").env == "playground"


def test_load_key_material_pkcs12(eet_config, p12_file, private_key):
    eet_config.p12_path = str(p12_file)
    eet_config.p12_password = "eet"

    key, cert_pem = eet_config.load_key_material()

    assert key.private_numbers() == private_key.private_numbers()
    assert cert_pem.startswith("-----BEGIN CERTIFICATE-----")


def test_load_key_material_pem(eet_config, pem_files):
    key_file, cert_file = pem_files
    eet_config.key_path = str(key_file)
    eet_config.cert_path = str(cert_file)

    key, cert_pem = eet_config.load_key_material()
    assert key.key_size == 2048


def test_load_key_material_missing(eet_config):
    with pytest.raises(ValueError, match="EET_P12_PATH"):
        eet_config.load_key_material()
