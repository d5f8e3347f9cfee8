"""
Tests for configuration management.
"""

import pytest
from loguru import logger

from btcapi.config import Settings, get_settings
from btcapi.errors import ConfigLoadError


def test_default_settings(monkeypatch) -> None:
    monkeypatch.delenv("BTCAPI_NETWORK", raising=False)
    settings = Settings(_env_file=None)
    assert settings.network == "testnet"
    assert settings.http_port == 8080
    assert settings.signing_enabled is False
    assert settings.get_signing_keys() == []


def test_env_prefix(monkeypatch) -> None:
    monkeypatch.setenv("BTCAPI_NETWORK", "signet")
    monkeypatch.setenv("BTCAPI_HTTP_PORT", "9090")
    settings = Settings(_env_file=None)
    assert settings.network == "signet"
    assert settings.http_port == 9090


def test_signing_keys_parsing() -> None:
    settings = Settings(_env_file=None, signing_keys=" key1 ,key2,, ")
    assert settings.get_signing_keys() == ["key1", "key2"]


def test_chain_context() -> None:
    settings = Settings(
        _env_file=None,
        network="regtest",
        esplora_url="http://localhost:3002",
        explorer_tx_url="http://localhost:8080/tx",
        signing_enabled=True,
    )
    context = settings.chain_context()
    assert context.network == "regtest"
    assert context.esplora_url == "http://localhost:3002"
    assert context.explorer_tx_url == "http://localhost:8080/tx"
    assert context.signing_enabled is True


def test_unknown_network_rejected() -> None:
    with pytest.raises(ConfigLoadError):
        get_settings(_env_file=None, network="litecoin")


def test_port_range() -> None:
    with pytest.raises(ConfigLoadError, match="http_port"):
        get_settings(_env_file=None, http_port=0)


def test_mainnet_only_rawtx_warns_on_other_networks() -> None:
    messages: list[str] = []
    handler_id = logger.add(lambda message: messages.append(str(message)), level="WARNING")
    try:
        Settings(_env_file=None, network="testnet", rawtx_url="https://blockchain.info")
        assert any("only serves mainnet" in message for message in messages)

        messages.clear()
        Settings(_env_file=None, network="mainnet", rawtx_url="https://blockchain.info")
        Settings(_env_file=None, network="testnet", rawtx_url="https://rawtx.test")
        assert messages == []
    finally:
        logger.remove(handler_id)
