"""Command-line entry points: run an aggregation pass, seed defaults, create tables."""

from typing import List, Optional

import structlog
import typer

from .config import get_settings
from .core.database import SessionLocal, create_tables
from .core.log_config import configure_logging
from .seeders import seed_all
from .services.aggregator_service import AggregatorService

logger = structlog.get_logger(__name__)

app = typer.Typer(help="News aggregator maintenance commands.")


@app.callback()
def setup() -> None:
    configure_logging(get_settings())


def warn_if_process_local_cache() -> None:
    """The memory backend lives in this process only, so a running API keeps its cached reads."""
    if get_settings().cache_backend != "memory":
        return
    logger.warning("Memory cache backend in use, API server caches will not be invalidated")
    typer.secho(
        "Warning: CACHE_BACKEND=memory only clears this command's own cache. "
        "The API server keeps serving cached results until they expire; "
        "set CACHE_BACKEND=redis to share invalidation with it.",
        fg=typer.colors.YELLOW,
        err=True,
    )


@app.command()
def update(
    source: Optional[List[str]] = typer.Option(
        None,
        "--source",
        "-s",
        help="Provider id to update (newsapi, guardian, nytimes). Repeat for several; defaults to all.",
    ),
    limit: int = typer.Option(50, "--limit", "-l", min=1, max=100, help="Maximum articles per source."),
) -> None:
    """Fetch and store articles from the configured sources."""
    typer.echo("Starting news aggregation...")
    warn_if_process_local_cache()

    options = {"limit": limit}
    if source:
        options["sources"] = source

    db = SessionLocal()
    try:
        aggregator = AggregatorService(db)
        results = aggregator.aggregate_news(options)
    except Exception as e:
        logger.error("News aggregation command failed", error=str(e), exc_info=True)
        typer.secho(f"News aggregation failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    finally:
        db.close()

    typer.echo("News aggregation completed.")
    typer.echo("")

    for name, result in results.items():
        if result.status == "success":
            typer.secho(f"OK {name}: {result.fetched} fetched, {result.stored} stored", fg=typer.colors.GREEN)
            if result.fetch_error:
                typer.secho(f"   Warning: {result.fetch_error}", fg=typer.colors.YELLOW)
        else:
            typer.secho(f"FAILED {name}: {result.fetched} fetched, {result.stored} stored", fg=typer.colors.RED)
            typer.secho(f"   Error: {result.error}", fg=typer.colors.RED)

    totals = aggregator.run_summary(results)
    typer.echo("")
    typer.echo(f"Total: {totals['total_fetched']} articles fetched, {totals['total_stored']} articles stored")
    logger.info("News aggregation completed via command", **totals)


@app.command()
def seed() -> None:
    """Insert or refresh the default sources and categories."""
    db = SessionLocal()
    try:
        counts = seed_all(db)
    finally:
        db.close()
    typer.echo(f"Seeded {counts['sources']} sources and {counts['categories']} categories.")


@app.command("init-db")
def init_db() -> None:
    """Create all tables."""
    create_tables()
    typer.echo("Database tables created.")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
