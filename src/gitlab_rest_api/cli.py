"""Command-line interface for the GitLab REST client.

Calls any endpoint of the table from the shell:

    gitlab-rest-api call create-issue mygroup/myproject title:"Broken build"
    gitlab-rest-api call --all issues 42 state:opened
    gitlab-rest-api call edit-project 42 avatar:@logo.png
"""

from __future__ import annotations

import json
import re
import sys
from typing import Any

import httpx
import typer

from gitlab_rest_api import __version__
from gitlab_rest_api.api import GitLabAPI
from gitlab_rest_api.config import (
    ApiVersion,
    ConfigError,
    default_config_path,
    load_config,
    save_config_file,
)
from gitlab_rest_api.constants import resolve_value
from gitlab_rest_api.endpoints import load_endpoints
from gitlab_rest_api.logging_config import get_logger, setup_logging
from gitlab_rest_api.rest.exceptions import GitLabError
from gitlab_rest_api.rest.payload import FileUpload

app = typer.Typer(
    name="gitlab-rest-api",
    help="Call GitLab REST API endpoints from the command line",
    add_completion=False,
)

# key:value arguments; the key may carry brackets, e.g. labels[]:bug
PARAM_RE = re.compile(r"^([\w\[\]]+):(.*)$", re.DOTALL)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"gitlab-rest-api version {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """GitLab REST API command-line client."""


def method_name(method: str) -> str:
    """Map a command-line method name to the endpoint name (kebab to snake case)."""
    return method.replace("-", "_")


def parse_call_args(tokens: list[str]) -> tuple[list[str], dict[str, Any] | FileUpload | None]:
    """Split command-line arguments into path values and parameters.

    ``key:value`` arguments become parameters; a value starting with ``@``
    names a file to upload in that field.  Keys ending in ``[]`` collect
    their values into a list.  Everything else is a path value.

    Args:
        tokens: Arguments following the method name

    Returns:
        Tuple of (path values, parameters or FileUpload or None)

    Raises:
        typer.BadParameter: If more than one file is given
    """
    positional: list[str] = []
    params: dict[str, Any] = {}
    upload: tuple[str, str] | None = None

    for token in tokens:
        match = PARAM_RE.match(token)
        if not match:
            positional.append(token)
            continue

        key, value = match.groups()
        if value.startswith("@"):
            if upload is not None:
                msg = "Only one file can be uploaded per call"
                raise typer.BadParameter(msg)
            upload = (key, value[1:])
        elif key.endswith("[]"):
            params.setdefault(key, []).append(resolve_value(key[:-2], value))
        else:
            params[key] = resolve_value(key, value)

    if upload is not None:
        field, path = upload
        return positional, FileUpload(path, field=field, fields=params)
    return positional, params or None


def _echo_value(value: Any) -> None:
    """Write a call result to stdout."""
    if value is None:
        return
    if isinstance(value, bytes):
        typer.echo(value, nl=False)
        return
    typer.echo(json.dumps(value, indent=2, sort_keys=True))


@app.command()
def call(
    method: str = typer.Argument(..., help="Endpoint method, e.g. create-issue"),
    args: list[str] | None = typer.Argument(
        None, help="Path values, then key:value parameters (key:@file uploads a file)"
    ),
    url: str | None = typer.Option(None, "--url", help="API base URL"),
    private_token: str | None = typer.Option(
        None, "--private-token", help="Private token (Private-Token header)"
    ),
    access_token: str | None = typer.Option(
        None, "--access-token", help="Access token (Authorization: Bearer header)"
    ),
    retries: int | None = typer.Option(None, "--retries", help="Extra attempts on 429 and 5xx"),
    retry_wait: float | None = typer.Option(
        None, "--retry-wait", help="Seconds between attempts"
    ),
    sudo: str | None = typer.Option(None, "--sudo", help="User to act as"),
    api_version: str | None = typer.Option(None, "--api-version", help="v4 (default) or v3"),
    config_file: str | None = typer.Option(
        None, "--config-file", "-c", help="Path to configuration file (JSON or YAML)"
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level override (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    ),
    all_pages: bool = typer.Option(
        False, "--all", "-a", help="Fetch every page and print all records"
    ),
) -> None:
    """Call one API endpoint and print the result as JSON."""
    cli_args: dict[str, Any] = {
        "url": url,
        "private_token": private_token,
        "access_token": access_token,
        "retries": retries,
        "retry_wait": retry_wait,
        "sudo_user": sudo,
        "api_version": api_version,
        "log_level": log_level,
    }
    name = method_name(method)

    try:
        positional, trailing = parse_call_args(args or [])
        call_args: list[Any] = [*positional]
        if trailing is not None:
            call_args.append(trailing)

        config = load_config(path=config_file, cli_args=cli_args)
        setup_logging(config)
        logger = get_logger(__name__)
        logger.debug("Calling %s with %d argument(s)", name, len(call_args))

        with GitLabAPI.from_config(config) as api:
            if all_pages:
                value: Any = api.paginator(name, *call_args).all()
            else:
                value = api.call(name, *call_args)

    except (ConfigError, GitLabError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from None

    _echo_value(value)


@app.command()
def methods(
    pattern: str | None = typer.Argument(None, help="Only list methods containing this text"),
    api_version: str = typer.Option("v4", "--api-version", help="v4 (default) or v3"),
) -> None:
    """List the available endpoint methods."""
    try:
        table = load_endpoints(ApiVersion(api_version))
    except ValueError:
        typer.echo(f"Error: unknown API version {api_version!r}", err=True)
        raise typer.Exit(code=1) from None

    needle = method_name(pattern) if pattern else None
    for name, endpoint in table.items():
        if needle and needle not in name:
            continue
        typer.echo(f"{endpoint.signature():60} {endpoint.verb} {endpoint.path}")


@app.command()
def configure(
    config_file: str | None = typer.Option(
        None, "--config-file", "-c", help="File to write (default ~/.gitlab-api-config)"
    ),
) -> None:
    """Prompt for connection settings and store them in the configuration file."""
    path = config_file or str(default_config_path())

    url = typer.prompt("GitLab API URL", default="https://gitlab.com/api/v4")
    token_kind = typer.prompt(
        "Token type (private/access/none)", default="private", show_choices=False
    ).lower()

    values: dict[str, Any] = {"url": url}
    if token_kind in ("private", "access"):
        token = typer.prompt(f"{token_kind.capitalize()} token", hide_input=True)
        values[f"{token_kind}_token"] = token
    elif token_kind != "none":
        typer.echo(f"Error: unknown token type {token_kind!r}", err=True)
        raise typer.Exit(code=1)

    try:
        written = save_config_file(path, values)
    except OSError as e:
        typer.echo(f"Error: cannot write {path}: {e}", err=True)
        raise typer.Exit(code=1) from None

    typer.echo(f"Configuration written to {written}")


@app.command()
def version() -> None:
    """Print version information."""
    typer.echo(f"gitlab-rest-api version {__version__}")
    typer.echo(f"httpx version {httpx.__version__}")
    typer.echo(f"Python {sys.version}")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
