"""CLI entry point for the chatbot."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional
import click
import structlog

from ..config.settings import settings
from ..core.conversation_manager import ConversationConfig, ConversationController
from ..core.errors import ConfigurationError
from ..providers import registry
from ..utils.logging import setup_logging
from .ask import ask
from .render import MessageRenderer
from .repl import ChatRepl


logger = structlog.get_logger()


def configure(config: Optional[str], debug: bool, quiet: bool = True) -> None:
    """Load the config file (if any) and set up logging from settings."""
    if config:
        settings.config_file = Path(config)
        settings.reload()

    setup_logging(
        debug=debug,
        log_file=settings.logging.file_enabled,
        log_level=settings.logging.level,
        log_format=settings.logging.format,
        file_rotation_mb=settings.logging.file_rotation_mb,
        file_backup_count=settings.logging.file_backup_count,
        quiet=quiet,
    )


def check_configuration(mock: bool) -> None:
    """Exit with status 1 if the generation endpoint is not configured."""
    if mock:
        return
    try:
        settings.require_generation_config()
    except ConfigurationError as e:
        click.echo(click.style(f"❌ Configuration error: {e.message}", fg="red"), err=True)
        click.echo("Set it in the environment or a .env file, or use --mock.", err=True)
        sys.exit(1)


@click.command()
@click.option("--mock", is_flag=True, help="Run with mock providers (no API calls)")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option(
    "--config", type=click.Path(exists=True), help="Path to JSON configuration file"
)
@click.option("--no-speech", is_flag=True, help="Disable spoken playback of replies")
@click.option("--no-voice", is_flag=True, help="Disable microphone input")
def chat(mock: bool, debug: bool, config: Optional[str], no_speech: bool, no_voice: bool):
    """
    Start an interactive chat.

    Replies are rendered with fenced code blocks drawn separately. Use
    /voice to dictate, /speak N to hear a reply and /stop to cancel.
    """
    configure(config, debug)
    check_configuration(mock)

    renderer = MessageRenderer()
    controller = ConversationController(
        ConversationConfig(
            ai_provider=settings.ai_provider,
            tts_provider=settings.tts_provider,
            stt_provider=settings.stt_provider,
            enable_speech=not no_speech,
            enable_voice=not no_voice,
            mock_mode=mock,
        ),
        notifier=renderer.notify,
    )

    try:
        controller.start()
    except ConfigurationError as e:
        click.echo(click.style(f"❌ Configuration error: {e.message}", fg="red"), err=True)
        sys.exit(1)

    logger.info(
        "Chat session started",
        mock=mock,
        speech=controller.speech_available,
        voice=controller.voice_available,
    )
    click.echo(click.style("🤖 Chatbot", fg="green", bold=True))
    if mock:
        click.echo(click.style("⚠️  Running in MOCK mode - no API calls will be made", fg="yellow"))
    if not controller.speech_available:
        click.echo(click.style("Speech playback unavailable.", dim=True))
    if not controller.voice_available:
        click.echo(click.style("Voice input unavailable.", dim=True))
    click.echo("Type /help for commands, /quit to exit.\n")

    async def session():
        try:
            await ChatRepl(controller, renderer).run()
        finally:
            controller.stop()

    try:
        asyncio.run(session())
    except KeyboardInterrupt:
        click.echo("\nInterrupted")

    click.echo("👋 Goodbye!")


@click.command()
def providers():
    """List available providers."""
    click.echo("🔌 Available Providers")
    click.echo("-" * 50)
    for kind, names in (
        ("AI", registry.list_ai_providers()),
        ("TTS", registry.list_tts_providers()),
        ("STT", registry.list_stt_providers()),
    ):
        click.echo(f"{kind} Providers ({len(names)}): {', '.join(names)}")


@click.command(name="config")
@click.option(
    "--config", type=click.Path(exists=True), help="Path to JSON configuration file"
)
def show_config(config: Optional[str]):
    """Show effective settings and any problems with them."""
    if config:
        settings.config_file = Path(config)
        settings.reload()

    click.echo(json.dumps(settings.to_dict(), indent=2))
    issues = settings.validate()
    for issue in issues:
        click.echo(click.style(f"⚠️  {issue}", fg="yellow"), err=True)
    if issues:
        sys.exit(1)


cli = click.Group(help="Gemini voice chatbot.")
cli.add_command(chat)
cli.add_command(ask)
cli.add_command(providers)
cli.add_command(show_config)


if __name__ == "__main__":
    cli()
