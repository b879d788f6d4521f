"""
Command-line interface for site-search-sync.

Usage:
    sitesearch init-db        # Create the documents table
    sitesearch sync           # Run one full sync across all sources
    sitesearch serve          # Run the document API
    sitesearch health         # Check database health
    sitesearch stats          # Stored documents per source
    sitesearch check-access 42 --role "Senior School:Staff"
"""

import asyncio
import os
import sys

import click

from sitesearch.config.settings import get_settings
from sitesearch.observability.logging import setup_logging
from sitesearch.observability.metrics import get_metrics


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool) -> None:
    """Site Search Sync - keep site-search documents in step with their sources."""
    if debug:
        os.environ["LOG_LEVEL"] = "DEBUG"
        get_settings.cache_clear()

    setup_logging()


@main.command("init-db")
def init_db() -> None:
    """Initialize the database schema."""
    from sitesearch.storage.database import Database
    from sitesearch.storage.repository import DocumentRepository

    async def run():
        async with Database() as db:
            repo = DocumentRepository(db)
            await repo.create_tables()

        click.echo("Database initialized successfully")

    asyncio.run(run())


@main.command()
@click.option("--strict", is_flag=True, help="Exit non-zero when any source failed")
def sync(strict: bool) -> None:
    """Run one sync of every configured source."""
    from sitesearch.storage.database import Database
    from sitesearch.sync.service import SyncService

    async def run():
        async with Database() as db:
            return await SyncService(db).run()

    report = asyncio.run(run())

    click.echo("\nSync Results:")
    click.echo("-" * 60)
    for result in report.results:
        if result.failed:
            click.echo(click.style(f"  ✗ {result.source}: {result.error}", fg="red"))
        elif result.skipped:
            click.echo(click.style(f"  - {result.source}: unchanged", fg="cyan"))
        else:
            click.echo(click.style(
                f"  ✓ {result.source}: added={result.added} updated={result.updated} "
                f"deleted={result.deleted} evicted={result.evicted} "
                f"unchanged={result.unchanged} dropped={result.dropped}",
                fg="green",
            ))
    click.echo("-" * 60)

    totals = report.totals
    click.echo(
        f"Total: added={totals['added']} updated={totals['updated']} "
        f"deleted={totals['deleted']} failed={totals['failed']}"
    )

    if strict and not report.ok:
        click.echo(click.style("Some sources failed!", fg="red"))
        sys.exit(1)


@main.command()
@click.option("--host", default=None, help="API server host")
@click.option("--port", default=None, type=int, help="API server port")
@click.option("--reload", is_flag=True, help="Enable auto-reload (dev only)")
@click.option("--metrics-port", default=None, type=int, help="Metrics server port")
def serve(host: str | None, port: int | None, reload: bool, metrics_port: int | None) -> None:
    """Start the document API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port
    metrics_port = metrics_port or settings.metrics_port

    get_metrics().start_server(port=metrics_port)

    click.echo(f"Starting API server on {host}:{port}")
    click.echo(f"Metrics available on http://localhost:{metrics_port}/metrics")
    click.echo(f"API docs available on http://localhost:{port}/docs")

    uvicorn.run(
        "sitesearch.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


@main.command()
def health() -> None:
    """Check database connectivity and sync configuration."""
    import structlog

    from sitesearch.storage.database import Database
    from sitesearch.sync.config import SyncConfig

    logger = structlog.get_logger()

    async def check() -> dict[str, bool]:
        results: dict[str, bool] = {}
        try:
            async with Database() as db:
                results["postgres"] = await db.health_check()
        except Exception as e:
            results["postgres"] = False
            logger.error("Postgres health check failed", error=str(e))

        config = SyncConfig()
        results["sites_configured"] = bool(config.site_endpoints)
        results["secret_configured"] = bool(config.secret)
        results["quicklinks_configured"] = config.quicklinks_path is not None
        return results

    results = asyncio.run(check())

    click.echo("\nHealth Check Results:")
    click.echo("-" * 40)
    for name, status in results.items():
        icon = "✓" if status else "✗"
        color = "green" if status else "red"
        click.echo(click.style(f"  {icon} {name}: {status}", fg=color))
    click.echo("-" * 40)

    if results["postgres"]:
        click.echo(click.style("Database healthy!", fg="green"))
    else:
        click.echo(click.style("Database unhealthy!", fg="red"))
        sys.exit(1)


@main.command()
def stats() -> None:
    """Show stored document counts per source."""
    from sitesearch.storage.database import Database
    from sitesearch.storage.repository import DocumentRepository

    async def run():
        async with Database() as db:
            return await DocumentRepository(db).count_by_source()

    counts = asyncio.run(run())
    if not counts:
        click.echo("No documents stored")
        return

    width = max(len(source) for source in counts)
    for source, count in counts.items():
        click.echo(f"  {source:<{width}}  {count}")
    click.echo(f"  {'total':<{width}}  {sum(counts.values())}")


@main.command("check-access")
@click.argument("doc_id", type=int)
@click.option("--role", "roles", multiple=True, help="Requester campus role (can repeat)")
@click.option("--year", "years", multiple=True, help="Requester year level (can repeat)")
@click.option("--admin", is_flag=True, help="Requester is a site admin")
def check_access(doc_id: int, roles: tuple[str, ...], years: tuple[str, ...], admin: bool) -> None:
    """Decide whether a requester may see a stored document."""
    from sitesearch.access.evaluator import AccessDecision, Requester
    from sitesearch.search.service import SearchAreaService
    from sitesearch.storage.database import Database
    from sitesearch.storage.repository import DocumentRepository

    requester = Requester(roles=list(roles), years=list(years), is_site_admin=admin)

    async def run():
        async with Database() as db:
            return await SearchAreaService(DocumentRepository(db)).check_access(doc_id, requester)

    decision = asyncio.run(run())
    color = "green" if decision == AccessDecision.GRANTED else "red"
    click.echo(click.style(f"Document {doc_id}: {decision.value.upper()}", fg=color))


if __name__ == "__main__":
    main()
