"""
Configuration management for the transaction service.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from loguru import logger
from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from btcapi.errors import ConfigLoadError

NetworkName = Literal["mainnet", "testnet", "signet", "regtest"]


@dataclass(frozen=True)
class ChainContext:
    """Process-wide, read-only chain configuration."""

    network: NetworkName
    esplora_url: str
    rawtx_url: str
    explorer_tx_url: str
    signing_enabled: bool


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BTCAPI_", env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    network: NetworkName = "testnet"

    # Esplora API: UTXOs, broadcast, recommended fees
    esplora_url: str = "https://mempool.space/testnet/api"
    # blockchain.info style raw transaction API (block_index / double_spend / rbf).
    # blockchain.info only serves mainnet; point this at a compatible service
    # when running on another network.
    rawtx_url: str = "https://blockchain.info"
    # Human facing transaction page, the txid is appended
    explorer_tx_url: str = "https://mempool.space/testnet/tx"

    signing_enabled: bool = False
    # Comma separated compressed-key WIFs
    signing_keys: str = ""

    http_host: str = "127.0.0.1"
    http_port: int = Field(default=8080, ge=1, le=65535)

    request_timeout: float = Field(default=30.0, gt=0)
    reservation_ttl: float = Field(default=600.0, gt=0)

    log_level: str = "INFO"

    @model_validator(mode="after")
    def check_rawtx_network(self) -> Settings:
        if self.network != "mainnet" and "blockchain.info" in self.rawtx_url:
            logger.warning(
                f"rawtx_url {self.rawtx_url} only serves mainnet, "
                f"transaction status lookups will fail on {self.network}"
            )
        return self

    def get_signing_keys(self) -> list[str]:
        return [key.strip() for key in self.signing_keys.split(",") if key.strip()]

    def chain_context(self) -> ChainContext:
        return ChainContext(
            network=self.network,
            esplora_url=self.esplora_url,
            rawtx_url=self.rawtx_url,
            explorer_tx_url=self.explorer_tx_url,
            signing_enabled=self.signing_enabled,
        )


def get_settings(**overrides: object) -> Settings:
    try:
        return Settings(**overrides)  # type: ignore[arg-type]
    except ValidationError as e:
        raise ConfigLoadError(str(e)) from e
