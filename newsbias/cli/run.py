"""Pipeline commands: ingest, score, query and topics."""

import asyncio
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

import psycopg
import typer
from rich.console import Console
from rich.table import Table

from ..config import Config
from ..db import close_pools, get_connection
from ..db.articles import ArticleRepository
from ..errors import NewsBiasError, ScoringIncomplete
from ..models import Article
from ..pipeline import PipelineOrchestrator
from ..scoring import BiasProcessingResult

console = Console()


@contextmanager
def _orchestrator() -> Iterator[PipelineOrchestrator]:
    """Orchestrator bound to one pooled connection; failures end the command."""
    config = Config()
    try:
        with get_connection(config.get_db_config()) as conn:
            yield PipelineOrchestrator(ArticleRepository(conn), config)
    except ScoringIncomplete as e:
        console.print(f"[red]❌ {e}[/red]")
        _print_failures(e.failures)
        raise typer.Exit(1)
    except NewsBiasError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)
    except psycopg.Error as e:
        console.print(f"[red]❌ Database error: {e}[/red]")
        raise typer.Exit(1)
    except asyncio.TimeoutError:
        console.print("[red]❌ Run timed out[/red]")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        raise typer.Exit(1)
    finally:
        close_pools()


def _print_failures(failures: List[Dict]) -> None:
    if not failures:
        return
    table = Table(title="Failed Articles")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Reason", style="red")
    for item in failures:
        table.add_row(item["id"], item["title"], item["reason"])
    console.print(table)


def _print_articles(topics: Dict[str, List[Article]]) -> None:
    for name, articles in topics.items():
        if not articles:
            console.print(f"[yellow]No articles stored for {name}.[/yellow]")
            continue

        table = Table(title=f"Articles: {name}")
        table.add_column("Title", style="cyan")
        table.add_column("Author", style="magenta")
        table.add_column("Bias", style="green")
        table.add_column("Link", style="blue")
        for article in articles:
            table.add_row(article.title, article.author, f"{article.bias:.4f}", article.link)
        console.print(table)


def ingest_command(
    topics: Optional[List[str]] = typer.Option(
        None,
        "--topic",
        "-t",
        help="Topic to ingest (repeatable). Default: configured topics",
    ),
) -> None:
    """Fetch topics from the content provider and store them."""
    with _orchestrator() as orchestrator:
        summary = asyncio.run(orchestrator.run_ingestion(topics or None))

    table = Table(title="Ingestion Summary")
    table.add_column("Topic", style="cyan")
    table.add_column("Stored", style="green")
    table.add_column("Updated", style="yellow")
    table.add_column("Skipped", style="dim")
    for tag, counts in summary.items():
        table.add_row(tag, str(counts.stored), str(counts.updated), str(counts.skipped))
    console.print(table)


def score_command(
    force: bool = typer.Option(False, "--force", help="Rescore articles that already have a score"),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", min=1, help="Maximum articles to score"),
) -> None:
    """Score stored articles for bias."""
    with _orchestrator() as orchestrator:
        result: BiasProcessingResult = asyncio.run(orchestrator.run_scoring(force=force, limit=limit))

    if result.total == 0:
        console.print("[yellow]No articles available for scoring.[/yellow]")
        return

    console.print(
        f"✅ Bias scores processed: [green]{result.updated} updated[/green], "
        f"[red]{result.failed} failed[/red], {result.total} total"
    )
    _print_failures(result.failed_items())


def query_command(
    topic: str = typer.Argument(..., help="Topic to fetch, score and show"),
) -> None:
    """Ingest one topic, score its newest articles and show them."""
    if not topic.strip():
        console.print("[red]❌ query is required[/red]")
        raise typer.Exit(1)

    with _orchestrator() as orchestrator:
        topics = asyncio.run(orchestrator.run_query(topic))

    _print_articles(topics)


def topics_command(
    topics: List[str] = typer.Argument(..., help="Topics to look up"),
) -> None:
    """Show stored articles for topics."""
    with _orchestrator() as orchestrator:
        results = orchestrator.lookup_topics(topics)

    if not results:
        console.print("[yellow]No topics provided.[/yellow]")
        return
    _print_articles(results)
