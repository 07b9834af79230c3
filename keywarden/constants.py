"""Default settings and algorithm tables for keywarden."""

from __future__ import annotations

from datetime import timedelta

DEFAULT_ALGORITHM = "EdDSA"
DEFAULT_MODULUS_LENGTH = 2048
MIN_MODULUS_LENGTH = 2048
DEFAULT_ROTATION_INTERVAL = timedelta(days=7)
DEFAULT_EXPIRATION_WINDOW = timedelta(days=28)
DEFAULT_KEYS_DIRECTORY = "./keys"

METADATA_FILE = "metadata.json"
PUBLIC_KEY_EXTENSION = ".pem"

# Rotation intervals below this are allowed but almost always a mistake.
MIN_RECOMMENDED_ROTATION_INTERVAL = timedelta(minutes=1)

OKP_ALGORITHMS = ("EdDSA", "Ed25519")
EC_ALGORITHMS = ("ES256", "ES384", "ES512")
RSA_BASED_ALGORITHMS = ("PS256", "PS384", "PS512", "RS256", "RS384", "RS512")
SUPPORTED_ALGORITHMS = OKP_ALGORITHMS + EC_ALGORITHMS + RSA_BASED_ALGORITHMS

JWK_USE_SIGNATURE = "sig"
