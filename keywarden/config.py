from __future__ import annotations

import logging
import os
import threading
from datetime import timedelta
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, ValidationError, field_validator

from .constants import (
    DEFAULT_ALGORITHM,
    DEFAULT_EXPIRATION_WINDOW,
    DEFAULT_KEYS_DIRECTORY,
    DEFAULT_MODULUS_LENGTH,
    DEFAULT_ROTATION_INTERVAL,
    MIN_MODULUS_LENGTH,
    MIN_RECOMMENDED_ROTATION_INTERVAL,
    RSA_BASED_ALGORITHMS,
)
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

Algorithm = Literal[
    "Ed25519",
    "EdDSA",
    "ES256",
    "ES384",
    "ES512",
    "PS256",
    "PS384",
    "PS512",
    "RS256",
    "RS384",
    "RS512",
]


class KeyManagerConfig(BaseModel):
    """Settings for key generation, rotation and storage."""

    algorithm: Algorithm = DEFAULT_ALGORITHM
    modulus_length: Optional[int] = None
    rotation_interval: timedelta = DEFAULT_ROTATION_INTERVAL
    expiration_window: timedelta = DEFAULT_EXPIRATION_WINDOW
    keys_directory: str = DEFAULT_KEYS_DIRECTORY
    # Keep revoked keys in the published set until they expire.
    publish_revoked_keys: bool = False
    # Delete the material of keys expired during a rotation pass.
    auto_purge: bool = False

    @field_validator("rotation_interval", "expiration_window")
    @classmethod
    def _positive_duration(cls, value: timedelta) -> timedelta:
        if value <= timedelta(0):
            raise ValueError("duration must be positive")
        return value

    @property
    def is_rsa(self) -> bool:
        return self.algorithm in RSA_BASED_ALGORITHMS

    @property
    def effective_modulus_length(self) -> Optional[int]:
        """Modulus length passed to key generation, ``None`` for non-RSA keys."""
        if not self.is_rsa:
            return None
        if self.modulus_length is None:
            return DEFAULT_MODULUS_LENGTH
        return self.modulus_length


def validate_config(config: KeyManagerConfig) -> None:
    """Check settings that are only meaningful in combination.

    Raises:
        ConfigurationError: if an RSA algorithm is paired with a modulus
            length below 2048 bits.
    """

    if config.is_rsa:
        if config.effective_modulus_length < MIN_MODULUS_LENGTH:
            raise ConfigurationError(
                f"RSA modulus length must be at least {MIN_MODULUS_LENGTH} bits"
            )
    elif config.modulus_length is not None:
        logger.warning("Modulus length is ignored for non-RSA algorithms")

    if config.rotation_interval < MIN_RECOMMENDED_ROTATION_INTERVAL:
        logger.warning("Keys rotation interval is very short (< 1 minute)")
    if config.rotation_interval.total_seconds() > threading.TIMEOUT_MAX:
        logger.warning(
            f"Keys rotation interval exceeds the platform timer limit ({threading.TIMEOUT_MAX} s)"
        )
    if config.expiration_window < config.rotation_interval * 2:
        logger.warning(
            "Keys expiration window should be at least 2x rotation interval for safe overlap"
        )


def load_config(path: Optional[str] = None) -> KeyManagerConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to KEYWARDEN_CONFIG env
            variable or 'keywarden.yaml' in the current directory.
    """

    config_path = path or os.getenv("KEYWARDEN_CONFIG", "keywarden.yaml")
    data: dict = {}
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration in {config_path} must be a mapping")

    env_algorithm = os.getenv("KEYWARDEN_ALGORITHM")
    if env_algorithm:
        data["algorithm"] = env_algorithm
    env_directory = os.getenv("KEYWARDEN_KEYS_DIRECTORY")
    if env_directory:
        data["keys_directory"] = env_directory

    try:
        return KeyManagerConfig(**data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration in {config_path}: {exc}") from exc
