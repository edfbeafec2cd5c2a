"""obs-websocket command line client.

Usage:
    obsws-client version                             # Show OBS / plugin versions
    obsws-client request GetSceneList                # Send any request
    obsws-client request SetCurrentProgramScene --data '{"sceneName": "BRB"}'
    obsws-client events                              # Stream all events as JSON lines
    obsws-client events --type InputMuteStateChanged --count 5

Connection settings come from --config (YAML), else OBSWS_* environment
variables; --url, --password and --timeout override either.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any

import click

from .client import ObsWebSocketClient
from .config import ClientConfig
from .errors import ObsWebSocketError
from .protocol.events import DisconnectionInfo, ObsEvent


def _make_client(config: ClientConfig) -> ObsWebSocketClient:
    return ObsWebSocketClient(config)


def _describe_close(info: DisconnectionInfo) -> str:
    if info.close_code is None:
        return "Connection closed"
    code = info.obs_close_code
    label = code.name if code is not None else str(info.close_code)
    if info.reason:
        return f"Connection closed ({label}: {info.reason})"
    return f"Connection closed ({label})"


def _run(coro: Any) -> Any:
    """Run a coroutine, turning client errors into a clean exit."""
    try:
        return asyncio.run(coro)
    except ObsWebSocketError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@click.group()
@click.option("--url", help="Server URL, e.g. ws://localhost:4455")
@click.option("--password", help="Server password")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML configuration file",
)
@click.option("--timeout", type=float, help="Request timeout in seconds")
@click.option("-v", "--verbose", is_flag=True, help="Log protocol traffic to stderr")
@click.pass_context
def main(
    ctx: click.Context,
    url: str | None,
    password: str | None,
    config_path: str | None,
    timeout: float | None,
    verbose: bool,
) -> None:
    """obs-websocket v5 client."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides = {"url": url, "password": password, "request_timeout": timeout}
    try:
        if config_path:
            config = ClientConfig.from_file(config_path, **overrides)
        else:
            config = ClientConfig.from_env(**overrides)
        config.validate()
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    ctx.obj = config


@main.command()
@click.argument("verb")
@click.option("--data", "data", help="requestData as a JSON object")
@click.pass_obj
def request(config: ClientConfig, verb: str, data: str | None) -> None:
    """Send VERB and print its responseData as JSON."""
    parameters: dict[str, Any] | None = None
    if data is not None:
        try:
            parameters = json.loads(data)
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"Invalid JSON: {e}", param_hint="--data") from e
        if not isinstance(parameters, dict):
            raise click.BadParameter("Must be a JSON object", param_hint="--data")

    async def run() -> dict[str, Any] | None:
        async with _make_client(config) as client:
            return await client.send(verb, parameters)

    result = _run(run())
    click.echo(json.dumps(result, indent=2))


@main.command()
@click.pass_obj
def version(config: ClientConfig) -> None:
    """Print OBS and obs-websocket version information."""

    async def run() -> str:
        async with _make_client(config) as client:
            info = await client.general.get_version()
            return info.model_dump_json(by_alias=True, indent=2)

    click.echo(_run(run()))


@main.command()
@click.option("--type", "event_types", multiple=True, help="Event type to show (repeatable)")
@click.option("--count", type=int, default=None, help="Exit after N events")
@click.pass_obj
def events(config: ClientConfig, event_types: tuple[str, ...], count: int | None) -> None:
    """Stream events as JSON lines until interrupted."""

    async def run() -> None:
        queue: asyncio.Queue[ObsEvent | DisconnectionInfo] = asyncio.Queue()

        def on_event(event: ObsEvent) -> None:
            queue.put_nowait(event)

        def on_disconnected(info: DisconnectionInfo) -> None:
            queue.put_nowait(info)

        client = _make_client(config)
        if event_types:
            for event_type in event_types:
                client.on(event_type, on_event)
        else:
            client.on_any(on_event)
        client.on_disconnected(on_disconnected)

        async with client:
            seen = 0
            while count is None or seen < count:
                event = await queue.get()
                if isinstance(event, DisconnectionInfo):
                    click.echo(_describe_close(event), err=True)
                    break
                click.echo(event.model_dump_json(by_alias=True, exclude_none=True))
                seen += 1

    try:
        _run(run())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
