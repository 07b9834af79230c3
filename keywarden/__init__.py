"""keywarden: rotating signing keys and JWKS publication."""

from .config import KeyManagerConfig, load_config, validate_config
from .crypto import CryptoGateway, PemCryptoGateway, get_crypto_gateway
from .engine import KeyLifecycleEngine
from .errors import (
    ConfigurationError,
    CryptoError,
    KeywardenError,
    MetadataError,
    NoActiveKeyError,
    PersistenceError,
    UnknownKeyError,
)
from .keys import KeyProvider
from .metadata import (
    InMemoryMetadataStore,
    JsonFileMetadataStore,
    MetadataStore,
    get_metadata_store,
)
from .models import KeyMetadata, KeyRecord, KeyStatus, SigningKey
from .publisher import JwksPublisher

__version__ = "0.1.0"
__all__ = [
    "ConfigurationError",
    "CryptoError",
    "CryptoGateway",
    "InMemoryMetadataStore",
    "JsonFileMetadataStore",
    "JwksPublisher",
    "KeyLifecycleEngine",
    "KeyManagerConfig",
    "KeyMetadata",
    "KeyProvider",
    "KeyRecord",
    "KeyStatus",
    "KeywardenError",
    "MetadataError",
    "MetadataStore",
    "NoActiveKeyError",
    "PemCryptoGateway",
    "PersistenceError",
    "SigningKey",
    "UnknownKeyError",
    "get_crypto_gateway",
    "get_metadata_store",
    "load_config",
    "validate_config",
]
