"""
StudyBuddy CLI

Command-line interface for the StudyBuddy backend.
"""

import asyncio
import os
import sys

import click
import structlog

from studybuddy import __version__
from studybuddy.config import settings
from studybuddy.logging_config import configure_logging

logger = structlog.get_logger()


# ══════════════════════════════════════════════════════════════
# CLI Group
# ══════════════════════════════════════════════════════════════


@click.group()
@click.version_option(version=__version__, prog_name="studybuddy")
@click.option("--debug/--no-debug", default=False, help="Enable debug logging")
def cli(debug: bool) -> None:
    """StudyBuddy - backend functions for the StudyBuddy study platform.

    Realtime voice tutoring and AI quiz generation.
    """
    if debug:
        # Reload and worker processes re-read settings from the environment
        os.environ["LOG_LEVEL"] = "DEBUG"
        settings.log_level = "DEBUG"
        configure_logging("DEBUG")


# ══════════════════════════════════════════════════════════════
# Server Commands
# ══════════════════════════════════════════════════════════════


@cli.command()
@click.option("--host", default="0.0.0.0", help="Host to bind to")
@click.option("--port", default=8000, help="Port to bind to")
@click.option("--reload/--no-reload", default=False, help="Enable auto-reload")
@click.option("--workers", default=1, help="Number of worker processes")
def serve(host: str, port: int, reload: bool, workers: int) -> None:
    """Start the StudyBuddy API server.

    Serves the realtime chat relay and the quiz generator.
    """
    import uvicorn

    prefix = settings.api_prefix
    click.echo(f"Starting StudyBuddy API on {host}:{port}")
    click.echo("Endpoints:")
    click.echo(f"  - ws://{host}:{port}{prefix}/realtime-chat")
    click.echo(f"  - http://{host}:{port}{prefix}/generate-quiz")

    if not settings.openai_configured:
        click.echo("Warning: OPENAI_API_KEY is not set", err=True)

    uvicorn.run(
        "studybuddy.api.app:create_app",
        host=host,
        port=port,
        reload=reload,
        workers=workers if not reload else 1,
        factory=True,
    )


# ══════════════════════════════════════════════════════════════
# Quiz Commands
# ══════════════════════════════════════════════════════════════


@cli.command()
@click.argument("subject")
@click.option("--difficulty", "-d", default="medium", help="Difficulty level")
@click.option("--count", "-n", default=5, type=click.IntRange(1, 50), help="Number of questions")
def quiz(subject: str, difficulty: str, count: int) -> None:
    """Generate quiz questions for SUBJECT and print them as JSON."""
    import orjson

    from studybuddy.errors import StudyBuddyError
    from studybuddy.integrations.openai import OpenAIClient

    async def run_quiz():
        client = OpenAIClient()
        try:
            return await client.generate_quiz(subject, difficulty, count)
        finally:
            await client.close()

    try:
        questions = asyncio.run(run_quiz())
    except StudyBuddyError as e:
        click.echo(f"Quiz generation failed: {e}", err=True)
        sys.exit(1)

    click.echo(orjson.dumps({"questions": questions}, option=orjson.OPT_INDENT_2).decode())


# ══════════════════════════════════════════════════════════════
# Config Commands
# ══════════════════════════════════════════════════════════════


@cli.command()
def config() -> None:
    """Show current configuration."""
    click.echo("StudyBuddy Configuration\n")

    config_items = [
        ("Environment", settings.app_env),
        ("Debug", str(settings.debug)),
        ("Log Level", settings.log_level),
        ("API Prefix", settings.api_prefix),
        ("OpenAI API Key", settings.openai_api_key),
        ("Realtime Endpoint", settings.realtime_endpoint),
        ("Realtime Voice", settings.realtime_voice),
        ("Open Timeout", str(settings.openai_realtime_open_timeout or "none")),
        ("Quiz Model", settings.quiz_model),
    ]

    for key, value in config_items:
        # Mask sensitive values
        if "key" in key.lower() or "secret" in key.lower():
            value = "***" if value else "Not set"
        click.echo(f"  {key:20} {value}")


# ══════════════════════════════════════════════════════════════
# Entry Point
# ══════════════════════════════════════════════════════════════


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
