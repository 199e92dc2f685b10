"""Init command implementation."""

from pathlib import Path

import psycopg
import typer
from rich.console import Console
from rich.panel import Panel

from ..config import Config, ConfigModel, save_config
from ..config.loader import DEFAULT_CONFIG_PATH
from ..db import init_database, validate_connection

console = Console()


def init_command(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        "-c",
        help="Configuration file to write",
    ),
    db_host: str = typer.Option("localhost", "--db-host", help="Postgres host"),
    db_port: int = typer.Option(5432, "--db-port", help="Postgres port"),
    db_name: str = typer.Option("newsbias", "--db-name", help="Database name"),
    db_user: str = typer.Option("newsbias", "--db-user", help="Database user"),
) -> None:
    """Write a default configuration and create the database schema."""
    console.print(Panel.fit("newsbias - Initialization", style="bold blue"))

    config = ConfigModel(
        postgres={
            "host": db_host,
            "port": db_port,
            "database": db_name,
            "user": db_user,
            "password_env": "NEWSBIAS_DB_PASSWORD",
        },
    )

    save_config(config, config_path)
    console.print(f"✅ Created config: {config_path}")

    console.print("\n[bold]Testing database connection...[/bold]")
    db_config = Config(config_path, config).get_db_config()

    if not validate_connection(db_config):
        console.print(
            "[red]❌ Database connection failed![/red]\n"
            "Please ensure Postgres is running and credentials are correct.\n"
            "Set the password via environment variable: [bold]export NEWSBIAS_DB_PASSWORD=your_password[/bold]\n"
            "or point [bold]DB_URL[/bold] at the database."
        )
        raise typer.Exit(1)

    console.print("✅ Database connection successful")

    console.print("\n[bold]Initializing database schema...[/bold]")
    try:
        init_database(db_config)
        console.print("✅ Database schema initialized")
    except psycopg.Error as e:
        console.print(f"[red]❌ Failed to initialize database: {e}[/red]")
        raise typer.Exit(1)

    console.print(
        Panel(
            f"[green]✅ newsbias initialized successfully![/green]\n\n"
            f"Configuration: {config_path}\n\n"
            f"Next steps:\n"
            f"1. Set the content key: [bold]export NEWS_API_KEY=your_key[/bold]\n"
            f"2. Set the bucket: [bold]export AWS_S3_BUCKET=bucket AWS_REGION=region[/bold]\n"
            f"3. Set the inference token: [bold]export HF_TOKEN=your_token[/bold]\n"
            f"4. Run: [bold]newsbias ingest[/bold] then [bold]newsbias score[/bold]",
            style="green",
        )
    )
