"""One-shot `ask` command: send a single prompt and print the reply."""

import asyncio
import json
import sys
import time
from pathlib import Path
from typing import Optional
import click

from ..config.settings import settings
from ..core.conversation_manager import ConversationConfig, ConversationController
from ..core.errors import ConfigurationError
from ..core.segmenter import split_message
from ..core.request_manager import RequestSession
from ..providers import registry
from ..utils.logging import setup_logging
from .render import MessageRenderer


async def _ask(controller: ConversationController, prompt: str) -> Optional[RequestSession]:
    """Submit one prompt and wait for it to settle. None if it was rejected."""
    session = controller.submit(prompt)
    if session is not None:
        await controller.wait_for_reply()
    return session


@click.command()
@click.option(
    "--input", "-i", "prompt", help="Prompt text (if not provided, reads from stdin)"
)
@click.option("--model", "-m", help="Gemini model to use")
@click.option(
    "--json", "json_output", is_flag=True, help="Output the reply and its segments as JSON"
)
@click.option("--mock", is_flag=True, help="Use the mock provider (no API calls)")
@click.option(
    "--config", type=click.Path(exists=True), help="Path to JSON configuration file"
)
@click.option("--debug", is_flag=True, help="Enable debug logging")
def ask(
    prompt: Optional[str],
    model: Optional[str],
    json_output: bool,
    mock: bool,
    config: Optional[str],
    debug: bool,
):
    """
    Send one prompt and print the reply.

    Examples:
    \b
        chatbot ask --input "Explain list comprehensions"
        echo "Write a haiku about Python" | chatbot ask --json
    """
    if config:
        settings.config_file = Path(config)
        settings.reload()

    # Logs go to stderr, so stdout stays clean for --json consumers.
    setup_logging(debug=debug, log_format=settings.logging.format, quiet=not debug)

    if prompt is None:
        prompt = sys.stdin.read().strip()
    if not prompt or not prompt.strip():
        click.echo("Error: No input provided", err=True)
        sys.exit(1)

    renderer = MessageRenderer()
    ai_provider = None
    if not mock:
        overrides = {"model_name": model} if model else {}
        ai_provider = registry.get_ai_provider(settings.ai_provider, **overrides)

    controller = ConversationController(
        ConversationConfig(enable_speech=False, enable_voice=False, mock_mode=mock),
        notifier=renderer.notify,
        ai_provider=ai_provider,
    )

    try:
        controller.ai_provider.initialize()
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    start_time = time.time()
    try:
        session = asyncio.run(_ask(controller, prompt))
    except KeyboardInterrupt:
        click.echo("\nInterrupted", err=True)
        sys.exit(1)
    finally:
        controller.stop()

    if session is None:
        sys.exit(1)

    reply = controller.state.store[-1].text
    if session.outcome != "success":
        click.echo(f"Error: {reply}", err=True)
        sys.exit(1)

    if json_output:
        output = {
            "input": prompt,
            "response": reply,
            "segments": [
                {"kind": segment.kind.value, "content": segment.content}
                for segment in split_message(reply)
            ],
            "model": controller.ai_provider.get_status().get("model"),
            "latency_ms": round((time.time() - start_time) * 1000, 2),
        }
        click.echo(json.dumps(output, indent=2))
    else:
        renderer.render(len(controller.state.store) - 1, controller.state.store[-1])
