"""Sign a token with the active key and verify it against the published JWKS."""

import asyncio
import tempfile

import jwt

from keywarden import KeyLifecycleEngine, KeyManagerConfig


async def main():
    """Issue a token, rotate, and show the old token still verifies."""
    keys_directory = tempfile.mkdtemp(prefix="keywarden-")
    config = KeyManagerConfig(algorithm="ES256", keys_directory=keys_directory)

    async with KeyLifecycleEngine(config) as engine:
        signer = engine.current_signer
        token = jwt.encode(
            {"sub": "alice"},
            signer.private_key,
            algorithm=signer.algorithm,
            headers={"kid": signer.kid},
        )
        print(f"Signed with key: {signer.kid}")

        await engine.rotate()
        print(f"Rotated, new active key: {engine.current_signer.kid}")

        kid = jwt.get_unverified_header(token)["kid"]
        claims = jwt.decode(
            token, engine.get_verification_key(kid), algorithms=[signer.algorithm]
        )
        print(f"Verified claims: {claims}")
        print(f"Published keys: {[jwk['kid'] for jwk in engine.jwks['keys']]}")


if __name__ == "__main__":
    asyncio.run(main())
