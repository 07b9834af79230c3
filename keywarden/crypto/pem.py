"""PEM file gateway built on ``cryptography`` and PyJWT."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa
from jwt.algorithms import ECAlgorithm, OKPAlgorithm, RSAAlgorithm

from ..constants import (
    EC_ALGORITHMS,
    JWK_USE_SIGNATURE,
    OKP_ALGORITHMS,
    PUBLIC_KEY_EXTENSION,
    RSA_BASED_ALGORITHMS,
)
from ..errors import CryptoError
from ..models import KeyPair
from .base import CryptoGateway

logger = logging.getLogger(__name__)

_EC_CURVES = {
    "ES256": ec.SECP256R1,
    "ES384": ec.SECP384R1,
    "ES512": ec.SECP521R1,
}


class PemCryptoGateway(CryptoGateway):
    """Store public keys as SubjectPublicKeyInfo PEM files, one per key."""

    def __init__(self, keys_directory: str | Path) -> None:
        self.keys_directory = Path(keys_directory)

    # ------------------------------------------------------------------
    # Key generation and encoding
    def generate_key_pair(
        self, algorithm: str, modulus_length: Optional[int] = None
    ) -> KeyPair:
        if algorithm in OKP_ALGORITHMS:
            private_key = ed25519.Ed25519PrivateKey.generate()
        elif algorithm in EC_ALGORITHMS:
            private_key = ec.generate_private_key(_EC_CURVES[algorithm]())
        elif algorithm in RSA_BASED_ALGORITHMS:
            if modulus_length is None:
                raise CryptoError(f"{algorithm} requires a modulus length")
            private_key = rsa.generate_private_key(
                public_exponent=65537, key_size=modulus_length
            )
        else:
            raise CryptoError(f"Unsupported algorithm: {algorithm}")
        return KeyPair(private_key=private_key, public_key=private_key.public_key())

    def encode_public_key(self, public_key: Any) -> bytes:
        return public_key.public_bytes(
            serialization.Encoding.PEM,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        )

    def decode_public_key(self, data: bytes, algorithm: str) -> Any:
        try:
            public_key = serialization.load_pem_public_key(data)
        except (ValueError, UnsupportedAlgorithm) as exc:
            raise CryptoError(f"Cannot decode public key: {exc}") from exc
        if not _matches_algorithm(public_key, algorithm):
            raise CryptoError(
                f"Stored key of type {type(public_key).__name__} does not match {algorithm}"
            )
        return public_key

    def to_discovery_entry(self, public_key: Any, kid: str, algorithm: str) -> dict:
        if algorithm in OKP_ALGORITHMS:
            exporter = OKPAlgorithm
        elif algorithm in EC_ALGORITHMS:
            exporter = ECAlgorithm
        elif algorithm in RSA_BASED_ALGORITHMS:
            exporter = RSAAlgorithm
        else:
            raise CryptoError(f"Unsupported algorithm: {algorithm}")
        jwk = json.loads(exporter.to_jwk(public_key))
        jwk["use"] = JWK_USE_SIGNATURE
        jwk["alg"] = algorithm
        jwk["kid"] = kid
        return jwk

    # ------------------------------------------------------------------
    # Material files
    def store_material(self, kid: str, data: bytes) -> str:
        self.keys_directory.mkdir(parents=True, exist_ok=True)
        path = self.keys_directory / f"{kid}{PUBLIC_KEY_EXTENSION}"
        path.write_bytes(data)
        logger.debug(f"Key saved: {path.name}")
        return str(path)

    def read_material(self, ref: str) -> bytes:
        data = Path(ref).read_bytes()
        logger.debug(f"Key loaded: {Path(ref).name}")
        return data

    def delete_stored_material(self, ref: str) -> None:
        path = Path(ref)
        if not path.exists():
            logger.warning(f"Key file already missing: {path.name}")
            return
        path.unlink()
        logger.debug(f"Key deleted: {path.name}")


def _matches_algorithm(public_key: Any, algorithm: str) -> bool:
    if algorithm in OKP_ALGORITHMS:
        return isinstance(public_key, ed25519.Ed25519PublicKey)
    if algorithm in EC_ALGORITHMS:
        return (
            isinstance(public_key, ec.EllipticCurvePublicKey)
            and isinstance(public_key.curve, _EC_CURVES[algorithm])
        )
    if algorithm in RSA_BASED_ALGORITHMS:
        return isinstance(public_key, rsa.RSAPublicKey)
    return False
