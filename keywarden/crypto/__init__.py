"""Crypto gateway selection."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from ..config import KeyManagerConfig, load_config
from .base import CryptoGateway
from .pem import PemCryptoGateway


def get_crypto_gateway(config: Optional[KeyManagerConfig] = None) -> CryptoGateway:
    """Factory returning the PEM file gateway for the configured directory."""

    config = config or load_config()
    return PemCryptoGateway(Path(config.keys_directory).resolve())


__all__ = ["CryptoGateway", "PemCryptoGateway", "get_crypto_gateway"]
