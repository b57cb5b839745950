"""
Tests for walrelay configuration.
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from walrelay.config import (
    AttestationConfig,
    PricingConfig,
    RelayerConfig,
    SourceChainConfig,
    WalrusConfig,
)
from walrelay.constants import CCTP_DOMAIN_ARBITRUM, CCTP_DOMAIN_SUI

TEST_PRIVATE_KEY = "0x" + "1" * 64


class TestDefaults:
    """Tests for default configuration values."""

    def test_relayer_defaults(self) -> None:
        config = RelayerConfig(source=SourceChainConfig(private_key=TEST_PRIVATE_KEY))

        assert config.source.cctp_domain == CCTP_DOMAIN_ARBITRUM
        assert config.destination.cctp_domain == CCTP_DOMAIN_SUI
        assert config.pricing.slippage_buffer_pct == Decimal("0.05")
        assert config.orchestrator.swap_attempts >= 1

    def test_private_key_not_in_repr(self) -> None:
        config = SourceChainConfig(private_key=TEST_PRIVATE_KEY)
        assert TEST_PRIVATE_KEY not in repr(config)

    def test_frozen(self) -> None:
        config = WalrusConfig()
        with pytest.raises(ValidationError):
            config.max_attempts = 10


class TestValidation:
    """Tests for field constraints."""

    def test_buffer_must_be_below_one(self) -> None:
        with pytest.raises(ValidationError):
            PricingConfig(slippage_buffer_pct=Decimal("1"))

    def test_poll_interval_positive(self) -> None:
        with pytest.raises(ValidationError):
            AttestationConfig(poll_interval=0)

    def test_rate_parsed_from_string(self) -> None:
        assert PricingConfig(static_exchange_rate="0.5").static_exchange_rate == Decimal("0.5")


class TestFromEnv:
    """Tests for RelayerConfig.from_env."""

    def test_reads_prefixed_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WALRELAY_SOURCE_PRIVATE_KEY", TEST_PRIVATE_KEY)
        monkeypatch.setenv("WALRELAY_EXCHANGE_RATE", "0.5")
        monkeypatch.setenv("WALRELAY_PUBLISHER_URL", "https://publisher.example.com")
        monkeypatch.setenv("WALRELAY_ATTESTATION_TIMEOUT", "60")
        monkeypatch.setenv("WALRELAY_DEX_POOL_ID", "0x" + "99" * 32)

        config = RelayerConfig.from_env()

        assert config.source.private_key == TEST_PRIVATE_KEY
        assert config.pricing.static_exchange_rate == Decimal("0.5")
        assert config.walrus.publisher_url == "https://publisher.example.com"
        assert config.attestation.timeout == 60.0
        assert config.destination.dex_pool_id == "0x" + "99" * 32

    def test_reads_contract_and_coin_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("walrelay.config.load_dotenv", lambda: False)
        monkeypatch.setenv("WALRELAY_SOURCE_PRIVATE_KEY", TEST_PRIVATE_KEY)
        monkeypatch.setenv("WALRELAY_SOURCE_CHAIN_ID", "421614")
        monkeypatch.setenv("WALRELAY_SOURCE_CCTP_DOMAIN", "3")
        monkeypatch.setenv("WALRELAY_USDC_ADDRESS", "0x" + "11" * 20)
        monkeypatch.setenv("WALRELAY_TOKEN_MESSENGER_ADDRESS", "0x" + "22" * 20)
        monkeypatch.setenv("WALRELAY_MESSAGE_TRANSMITTER_ADDRESS", "0x" + "33" * 20)
        monkeypatch.setenv("WALRELAY_DESTINATION_CCTP_DOMAIN", "8")
        monkeypatch.setenv("WALRELAY_USDC_COIN_TYPE", "0x2::usdc::USDC")
        monkeypatch.setenv("WALRELAY_TOKEN_COIN_TYPE", "0x3::wal::WAL")

        config = RelayerConfig.from_env()

        assert config.source.chain_id == 421614
        assert config.source.cctp_domain == 3
        assert config.source.usdc_address == "0x" + "11" * 20
        assert config.source.token_messenger_address == "0x" + "22" * 20
        assert config.source.message_transmitter_address == "0x" + "33" * 20
        assert config.destination.cctp_domain == 8
        assert config.destination.usdc_coin_type == "0x2::usdc::USDC"
        assert config.destination.token_coin_type == "0x3::wal::WAL"

    def test_missing_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("WALRELAY_SOURCE_PRIVATE_KEY", raising=False)
        monkeypatch.setattr("walrelay.config.load_dotenv", lambda: False)

        with pytest.raises(KeyError):
            RelayerConfig.from_env()
