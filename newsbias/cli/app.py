"""Main CLI application."""

import logging

import typer
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

from ..logger import setup_logging
from .init import init_command
from .run import ingest_command, query_command, score_command, topics_command
from .serve import serve_command

app = typer.Typer(
    name="newsbias",
    help="News ingestion and bias scoring pipeline",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    setup_logging(logging.DEBUG if verbose else logging.INFO)


# Register commands
app.command("init")(init_command)
app.command("ingest")(ingest_command)
app.command("score")(score_command)
app.command("query")(query_command)
app.command("topics")(topics_command)
app.command("serve")(serve_command)


if __name__ == "__main__":
    app()
