"""Command line interface for administering keywarden keys."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Awaitable, Callable, Optional, TypeVar

import typer

from keywarden import KeyLifecycleEngine, KeywardenError, load_config

T = TypeVar("T")

app = typer.Typer(help="CLI for keywarden signing keys")

# Command groups
keys_app = typer.Typer(help="Commands for managing signing keys")

app.add_typer(keys_app, name="keys")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v")) -> None:
    """keywarden CLI entry point."""
    logging.basicConfig(level=logging.INFO if verbose else logging.WARNING)


def _with_engine(operation: Callable[[KeyLifecycleEngine], Awaitable[T]]) -> T:
    """Load the configured keys and run ``operation`` against them.

    Admin commands do not start the rotation schedule. They must not run
    while a serving process owns the same keys directory.
    """

    async def _run() -> T:
        engine = KeyLifecycleEngine(load_config())
        await engine.load()
        return await operation(engine)

    try:
        return asyncio.run(_run())
    except KeywardenError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)


@keys_app.command("list")
def keys_list() -> None:
    """
    List every key with its status and lifetime.

    Shows keys in creation order, including expired and revoked keys kept
    for audit.

    Example:
        keywarden keys list
        # Output: 0b7c...    active      2026-01-01T00:00:00+00:00 -> 2026-01-29T00:00:00+00:00
    """

    async def _records(engine: KeyLifecycleEngine):
        return engine.records

    records = _with_engine(_records)
    if not records:
        typer.echo("No keys found")
        return
    for record in records:
        removed = " (material removed)" if record.removed_at else ""
        typer.echo(
            f"{record.kid}\t{record.status.value}\t"
            f"{record.created_at.isoformat()} -> {record.expires_at.isoformat()}{removed}"
        )


@keys_app.command("rotate")
def keys_rotate() -> None:
    """Deprecate the active key and generate a new one."""

    async def _rotate(engine: KeyLifecycleEngine):
        return await engine.rotate()

    record = _with_engine(_rotate)
    typer.echo(f"New active key: {record.kid}")


@keys_app.command("revoke")
def keys_revoke(
    kid: Optional[str] = typer.Argument(None, help="Key id (default: active key)"),
    all_keys: bool = typer.Option(False, "--all", help="Revoke every trusted key"),
) -> None:
    """
    Revoke a key before it expires.

    Revoking the active key (or every key with --all) immediately rotates
    in a new active key.

    Example:
        keywarden keys revoke
        keywarden keys revoke 0b7c2f7e-...
        keywarden keys revoke --all
    """

    async def _revoke(engine: KeyLifecycleEngine):
        if all_keys:
            return await engine.revoke_all()
        record = await engine.revoke(kid)
        return [record] if record else []

    revoked = _with_engine(_revoke)
    if not revoked and not all_keys:
        typer.echo("Key not found")
        raise typer.Exit(code=1)
    for record in revoked:
        typer.echo(f"Revoked: {record.kid}")


@keys_app.command("purge")
def keys_purge() -> None:
    """Delete stored public keys of expired and revoked keys."""

    async def _purge(engine: KeyLifecycleEngine):
        return await engine.purge()

    purged = _with_engine(_purge)
    if not purged:
        typer.echo("Nothing to purge")
        return
    for record in purged:
        typer.echo(f"Purged: {record.kid}")


@app.command("jwks")
def jwks_show() -> None:
    """Print the published JSON Web Key Set."""

    async def _document(engine: KeyLifecycleEngine):
        return engine.jwks

    typer.echo(json.dumps(_with_engine(_document), indent=2))


@app.command("run")
def run(lifespan: Optional[float] = None) -> None:
    """
    Run the key rotation schedule.

    Rotates once at startup and then every configured rotation interval.

    Args:
        lifespan: Seconds to keep running (default: run indefinitely)

    Example:
        keywarden run
        keywarden run --lifespan 300
    """

    async def _serve() -> None:
        engine = KeyLifecycleEngine(load_config())
        await engine.initialize()
        typer.echo(f"Active key: {engine.current_signer.kid}")
        try:
            if lifespan is None:
                await asyncio.Event().wait()
            else:
                await asyncio.sleep(lifespan)
        finally:
            await engine.shutdown()

    try:
        asyncio.run(_serve())
    except KeywardenError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
