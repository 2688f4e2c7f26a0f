"""Typer CLI definition for ipaspeak."""

import asyncio
import logging
from dataclasses import replace
from pathlib import Path

import typer

from .api import pronounce
from .config import CONFIG_PATH, generate_config, load_config
from .providers import ProviderRegistry
from .tts.errors import FatalProviderError, NormalizationError, TTSError

app = typer.Typer(help="Speak IPA pronunciations with AI voices")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format=LOG_FORMAT,
    )


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address (from config if omitted)"),
    port: int | None = typer.Option(None, "--port", help="Port (from config if omitted)"),
    provider: str | None = typer.Option(
        None, "-p", "--provider", help="TTS provider (from config if omitted)"
    ),
    debug: bool = typer.Option(False, "--debug", help="Log cache activity and retries"),
) -> None:
    """Run the IPA speech HTTP service."""
    from .server.__main__ import serve as run_server

    config = load_config()
    http_config = replace(
        config.http,
        host=host or config.http.host,
        port=port or config.http.port,
    )
    provider_config = replace(config.provider, name=provider or config.provider.name)
    config = replace(config, http=http_config, provider=provider_config)

    try:
        run_server(config, debug=debug)
    except (FatalProviderError, KeyError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None


@app.command()
def say(
    ipa: str = typer.Argument(..., help="IPA transcription, e.g. /ˈkæt/"),
    language: str | None = typer.Option(
        None, "-l", "--language", help="Language name or code (from config if omitted)"
    ),
    output: Path = typer.Option(..., "-o", "--output", help="File to save the audio to"),
    provider: str | None = typer.Option(
        None, "-p", "--provider", help="TTS provider (from config if omitted)"
    ),
    voice: str | None = typer.Option(
        None, "-v", "--voice", help="Voice ID (from config if omitted)"
    ),
    debug: bool = typer.Option(False, "--debug", help="Show verbose error messages"),
) -> None:
    """Synthesize one IPA transcription and save the audio."""
    configure_logging(debug)
    config = load_config()

    try:
        audio = asyncio.run(
            pronounce(
                ipa,
                language=language,
                provider=provider,
                voice=voice,
                output=output,
                config=config,
            )
        )
    except NormalizationError as e:
        typer.echo(f"Invalid IPA: {e}", err=True)
        raise typer.Exit(2) from None
    except TTSError as e:
        if debug:
            typer.echo(f"Debug - [{e.code}] {e!r}", err=True)
        else:
            typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    except KeyError as e:
        typer.echo(f"Error: {e.args[0]}", err=True)
        raise typer.Exit(1) from None
    except OSError as e:
        if debug:
            typer.echo(f"Debug - File system error: {e!r}", err=True)
        else:
            typer.echo(f"Error: Failed to save audio file: {e}", err=True)
        raise typer.Exit(1) from None

    typer.echo(f"Audio saved to {output} ({len(audio)} bytes)")


@app.command()
def voices(
    provider: str | None = typer.Option(
        None, "-p", "--provider", help="TTS provider (from config if omitted)"
    ),
    debug: bool = typer.Option(False, "--debug", help="Show verbose error messages"),
) -> None:
    """List available voices in "Name: voice_id" format."""
    configure_logging(debug)
    config = load_config()
    name = provider or config.provider.name

    async def _list() -> list[dict]:
        instance = ProviderRegistry.create(name, config.provider)
        return await instance.list_voices()

    try:
        available = asyncio.run(_list())
    except (TTSError, KeyError) as e:
        if debug:
            typer.echo(f"Debug - Failed to list voices: {e!r}", err=True)
        else:
            typer.echo(f"Error: Failed to list voices: {e}", err=True)
        raise typer.Exit(1) from None

    for voice in available:
        typer.echo(f"{voice['name']}: {voice['id']}")


@app.command("init-config")
def init_config(
    path: Path = typer.Option(CONFIG_PATH, "--path", help="Where to write the config file"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
) -> None:
    """Write the default configuration file."""
    if path.exists() and not force:
        typer.echo(f"Config already exists at {path} (use --force to overwrite)")
        raise typer.Exit(1)
    generated = generate_config(path)
    typer.echo(f"Config written to {generated}")
