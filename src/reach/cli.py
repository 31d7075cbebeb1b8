"""Command-line interface for agent-reach.

Example:
    >>> # From terminal:
    >>> # reach --version
    >>> # reach serve --port 3001
    >>> # reach keys generate --out ~/.config/agent-id/identity.json
    >>> # reach did
    >>> # reach sign-register https://agent.example.com/inbox --ttl 3600
    >>> # reach sign-deregister
    >>> # reach mcp --registry-url http://localhost:3001
"""

import asyncio
import contextlib
import json
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from reach import __version__
from reach.config import (
    ReachConfig,
    http_timeout_from_env,
    identity_path_from_env,
    registry_url_from_env,
)
from reach.crypto.did import did_from_public_key
from reach.crypto.keys import generate_keypair
from reach.crypto.signing import deregister_message, register_message, sign_message
from reach.handshake.prover import Prover
from reach.mcp.identity import IdentityError, load_identity, save_identity
from reach.models.constants import DEFAULT_TTL_SECONDS
from reach.observability import configure_logging

app = typer.Typer(help="agent-reach discovery registry CLI.")

# Nested Typer app for identity key management (Ed25519)
keys_app = typer.Typer(help="Ed25519 identity generation.")
app.add_typer(keys_app, name="keys")

IdentityOption = Annotated[
    Optional[Path],
    typer.Option(
        "--identity",
        "-i",
        help="Identity file. Defaults to $REACH_IDENTITY_PATH or ~/.config/agent-id/identity.json.",
    ),
]


def _version_callback(value: bool) -> None:
    """Print the version and exit when requested."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


VERSION_OPTION = typer.Option(
    False,
    "--version",
    help="Show agent-reach version and exit.",
    callback=_version_callback,
    is_eager=True,
)


@app.callback()
def cli(version: bool = VERSION_OPTION) -> None:
    """agent-reach CLI entrypoint."""


def _load_identity_or_exit(identity: Optional[Path]) -> Ed25519PrivateKey:
    path = identity if identity is not None else identity_path_from_env()
    try:
        return load_identity(path)
    except IdentityError as exc:
        typer.echo(f"Error: {exc}", err=True)
        typer.echo("Create one with: reach keys generate", err=True)
        raise typer.Exit(1) from exc


@app.command("serve")
def serve(
    host: Annotated[Optional[str], typer.Option("--host", help="Bind address.")] = None,
    port: Annotated[Optional[int], typer.Option("--port", "-p", help="Bind port.")] = None,
    allow_signed_requests: Annotated[
        Optional[bool],
        typer.Option(
            "--allow-signed-requests/--no-signed-requests",
            help="Accept per-request signatures on /register and /deregister.",
        ),
    ] = None,
    log_format: Annotated[
        Optional[str], typer.Option("--log-format", help="Log format: json or console.")
    ] = None,
) -> None:
    """Run the registry HTTP server."""
    import uvicorn

    from reach.transport.server import create_app

    if log_format is not None and log_format not in ("json", "console"):
        raise typer.BadParameter("--log-format must be 'json' or 'console'")
    configure_logging(log_format=log_format, force=True)
    config = ReachConfig.from_env(
        host=host, port=port, allow_signed_requests=allow_signed_requests
    )
    uvicorn.run(create_app(config), host=config.host, port=config.port, log_config=None)


@keys_app.command("generate")
def keys_generate(
    out: Annotated[
        Optional[Path],
        typer.Option("--out", "-o", help="Identity file to write (mode 0600)."),
    ] = None,
    force: Annotated[
        bool, typer.Option("--force", help="Overwrite an existing identity file.")
    ] = False,
) -> None:
    """Write a new Ed25519 identity and print its DID."""
    path = out if out is not None else identity_path_from_env()
    if path.exists() and path.is_dir():
        raise typer.BadParameter(f"Output path is a directory: {path}")
    if path.exists() and not force:
        typer.echo(f"Error: identity file already exists: {path} (use --force)", err=True)
        raise typer.Exit(1)
    private_key, public_key = generate_keypair()
    save_identity(private_key, path)
    typer.echo(f"Identity written to {path}")
    typer.echo(did_from_public_key(public_key))


@app.command("did")
def show_did(identity: IdentityOption = None) -> None:
    """Print the DID of an identity file."""
    private_key = _load_identity_or_exit(identity)
    typer.echo(did_from_public_key(private_key.public_key()))


@app.command("sign-register")
def sign_register(
    endpoint: Annotated[str, typer.Argument(help="Endpoint to publish.")],
    ttl: Annotated[
        int, typer.Option("--ttl", min=1, help="Registration lifetime in seconds.")
    ] = DEFAULT_TTL_SECONDS,
    identity: IdentityOption = None,
) -> None:
    """Print a signed /register body for registries that accept signed requests."""
    private_key = _load_identity_or_exit(identity)
    did = did_from_public_key(private_key.public_key())
    body = {
        "did": did,
        "endpoint": endpoint,
        "ttl": ttl,
        "signature": sign_message(private_key, register_message(did, endpoint, ttl)),
    }
    typer.echo(json.dumps(body, indent=2))


@app.command("sign-deregister")
def sign_deregister(identity: IdentityOption = None) -> None:
    """Print a signed /deregister body for registries that accept signed requests."""
    private_key = _load_identity_or_exit(identity)
    did = did_from_public_key(private_key.public_key())
    body = {"did": did, "signature": sign_message(private_key, deregister_message(did))}
    typer.echo(json.dumps(body, indent=2))


@app.command("mcp")
def mcp(
    identity: IdentityOption = None,
    registry_url: Annotated[
        Optional[str],
        typer.Option("--registry-url", help="Registry base URL. Defaults to $REACH_REGISTRY_URL."),
    ] = None,
) -> None:
    """Run the reach_* MCP tools on stdio."""
    from reach.mcp.tools import ReachTools, build_server
    from reach.transport.client import ReachClient

    # stdout carries the MCP protocol
    configure_logging(stream=sys.stderr, force=True)
    private_key = _load_identity_or_exit(identity)

    async def run() -> None:
        async with ReachClient(
            registry_url or registry_url_from_env(),
            Prover(private_key),
            timeout=http_timeout_from_env(),
        ) as client:
            await build_server(ReachTools(client)).serve_stdio()

    with contextlib.suppress(BrokenPipeError, KeyboardInterrupt):
        asyncio.run(run())


def main() -> None:
    """Run the agent-reach CLI."""
    app()


if __name__ == "__main__":
    main()
