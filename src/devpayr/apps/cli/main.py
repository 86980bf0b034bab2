# src/devpayr/apps/cli/main.py
"""Developer CLI: encrypt/sign payloads and run a license check by hand."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from devpayr.config.settings import DevPayrConfig
from devpayr.errors import DevPayrError
from devpayr.logging import setup_logger
from devpayr.services.crypto import codec, signature
from devpayr.services.runtime.cache import ValidationCache
from devpayr.services.runtime.validator import RuntimeValidator

app = typer.Typer(help="DevPayr license client tools", no_args_is_help=True)


def _fail(exc: DevPayrError) -> None:
    typer.echo(f"error: {exc}", err=True)
    raise typer.Exit(1) from exc


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON lines"),
):
    setup_logger(level="DEBUG" if verbose else "WARNING", json_format=json_logs)


@app.command("encrypt")
def cmd_encrypt(
    text: str,
    secret: str = typer.Option(..., "--secret", "-k", envvar="DEVPAYR_LICENSE", help="Shared secret (license key)"),
    sign: bool = typer.Option(False, "--sign", help="Also print the HMAC signature of the token"),
):
    token = codec.encrypt(text, secret)
    if sign:
        typer.echo(json.dumps({"encrypted_content": token, "signature": signature.sign(token, secret)}))
        return
    typer.echo(token)


@app.command("decrypt")
def cmd_decrypt(
    token: str,
    secret: str = typer.Option(..., "--secret", "-k", envvar="DEVPAYR_LICENSE"),
):
    try:
        typer.echo(codec.decrypt(token, secret))
    except DevPayrError as exc:
        _fail(exc)


@app.command("sign")
def cmd_sign(
    content: str,
    secret: str = typer.Option(..., "--secret", "-k", envvar="DEVPAYR_LICENSE"),
):
    typer.echo(signature.sign(content, secret))


@app.command("verify")
def cmd_verify(
    content: str,
    sig: str = typer.Argument(..., metavar="SIGNATURE"),
    secret: str = typer.Option(..., "--secret", "-k", envvar="DEVPAYR_LICENSE"),
):
    if signature.verify(content, secret, sig):
        typer.echo("valid")
        return
    typer.echo("invalid", err=True)
    raise typer.Exit(1)


@app.command("validate")
def cmd_validate(
    license: Optional[str] = typer.Option(None, "--license", "-l", envvar="DEVPAYR_LICENSE"),
    base_url: Optional[str] = typer.Option(None, "--base-url"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", exists=True, dir_okay=False),
    recheck: Optional[bool] = typer.Option(None, "--recheck/--no-recheck", help="Always call the API, ignoring the same-day cache"),
    handle: Optional[bool] = typer.Option(None, "--handle/--no-handle", help="Write the returned injectables"),
    path: Optional[Path] = typer.Option(None, "--path", help="Base directory for injectables"),
    verify: Optional[bool] = typer.Option(None, "--verify/--no-verify", help="Check injectable signatures"),
):
    overrides = {
        "license": license,
        "base_url": base_url,
        "recheck": recheck,
        "handle_injectables": handle,
        "injectables_path": path,
        "injectables_verify": verify,
    }
    try:
        if config_file is not None:
            config = DevPayrConfig.from_yaml(config_file, **overrides)
        else:
            config = DevPayrConfig.from_mapping({k: v for k, v in overrides.items() if v is not None})
        result = RuntimeValidator(config).validate()
    except DevPayrError as exc:
        _fail(exc)
        return

    typer.echo(result.message)
    for written in result.written:
        typer.echo(f"  wrote {written}")


@app.command("cache-clear")
def cmd_cache_clear(
    license: str = typer.Option(..., "--license", "-l", envvar="DEVPAYR_LICENSE"),
    cache_dir: Optional[Path] = typer.Option(None, "--cache-dir"),
):
    cache = ValidationCache(directory=cache_dir) if cache_dir else ValidationCache()
    removed = cache.clear(license)
    typer.echo("cache entry removed" if removed else "no cache entry")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
