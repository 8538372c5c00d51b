"""Main entry point for the community server using Typer and Pydantic Settings."""

import asyncio

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from community_server.constants import ServiceName
from community_server.container import InitializationReport, ServiceContainer, ServiceState
from community_server.logging import setup_logging
from community_server.services import build_container, initialize_services, register_services, shutdown_services
from community_server.settings import Settings, get_settings

app = typer.Typer(
    name="community-server",
    help="Community server - service container driven backend",
    no_args_is_help=True,
)
console = Console()

STATE_STYLES = {
    ServiceState.READY: "green",
    ServiceState.FAILED: "red",
    ServiceState.INITIALIZING: "yellow",
    ServiceState.UNINITIALIZED: "dim",
}


HOST_OPTION = typer.Option(
    None,
    help="Host to bind the server to (overrides COMMUNITY_SERVER_HOST)",
    metavar="<server>",
)  # fmt: skip
PORT_OPTION = typer.Option(
    None,
    help="Port to bind the server to (overrides COMMUNITY_SERVER_PORT)",
    metavar="<port>",
)  # fmt: skip
LOG_LEVEL_OPTION = typer.Option(
    None,
    help="Log level (overrides COMMUNITY_SERVER_LOG_LEVEL)",
    metavar="<level>",
    case_sensitive=False,
)  # fmt: skip
DATABASE_URL_OPTION = typer.Option(
    None,
    help="Database URL (overrides COMMUNITY_SERVER_DATABASE_URL)",
    metavar="<dsn>",
)  # fmt: skip
STRICT_OPTION = typer.Option(
    None,
    "--strict/--no-strict",
    help="Reject undeclared service dependencies (overrides COMMUNITY_SERVER_STRICT_DEPENDENCIES)",
)  # fmt: skip


def _update_settings(
    host: str | None,
    port: int | None,
    log_level: str | None,
    database_url: str | None,
    strict: bool | None,
) -> Settings:
    """Apply CLI overrides to the cached settings and return them."""
    settings = get_settings()

    if host is not None:
        settings.host = host
    if port is not None:
        settings.port = port
    if log_level is not None:
        settings.log_level = log_level.upper()  # type: ignore[assignment]
    if database_url is not None:
        settings.database_url = database_url
    if strict is not None:
        settings.strict_dependencies = strict

    return settings


async def serve(settings: Settings) -> None:
    """Start every service, serve HTTP until asked to stop, then shut everything down."""
    container = build_container(settings)
    register_services(container, settings)

    try:
        await initialize_services(container, settings)

        http_server = await container.get(ServiceName.HTTP_SERVER)
        await http_server.start()
        await http_server.wait()
    finally:
        logger.info("Shutting down...")
        await shutdown_services(container, settings)


async def check_services(settings: Settings) -> InitializationReport:
    """Initialize every service once, print their states, and shut down again."""
    container = build_container(settings)
    register_services(container, settings)
    try:
        report = await container.initialize_all()
        _print_states(container)
        if report.failed:
            console.print(f"\n[red]{len(report.failed)} service(s) failed to initialize[/red]")
            for name, message in report.failed.items():
                console.print(f"  {name}: {message}")
        else:
            console.print(f"\n[green]All {report.total} services initialized in {report.execution_time_ms:.1f}ms[/green]")
    finally:
        await shutdown_services(container, settings)
    return report


def _print_states(container: ServiceContainer) -> None:
    table = Table(title="Services")
    table.add_column("Service")
    table.add_column("State")
    table.add_column("Dependencies")
    table.add_column("Error")

    for status in container.describe():
        style = STATE_STYLES.get(ServiceState(status.state), "")
        table.add_row(
            status.name,
            f"[{style}]{status.state}[/{style}]" if style else str(status.state),
            ", ".join(status.dependencies) or "-",
            status.error or "",
        )
    console.print(table)


@app.command()
def run(
    host: str = HOST_OPTION,
    port: int = PORT_OPTION,
    log_level: str = LOG_LEVEL_OPTION,
    database_url: str = DATABASE_URL_OPTION,
    strict: bool = STRICT_OPTION,
) -> None:
    """Run the community server."""
    settings = _update_settings(host, port, log_level, database_url, strict)
    setup_logging(settings.log_level)

    logger.info(f"Starting community server on {settings.host}:{settings.port}")

    try:
        asyncio.run(serve(settings))
    except SystemExit:
        raise
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except Exception as e:
        logger.error(f"Failed to start: {e}")
        raise SystemExit(1) from None


@app.command()
def check(
    log_level: str = LOG_LEVEL_OPTION,
    database_url: str = DATABASE_URL_OPTION,
    strict: bool = STRICT_OPTION,
) -> None:
    """Initialize all services once, print their states, and exit."""
    settings = _update_settings(None, None, log_level, database_url, strict)
    setup_logging(settings.log_level, compact=True)

    report = asyncio.run(check_services(settings))

    failed_critical = [name for name in settings.critical_services if name in report.failed]
    if failed_critical:
        console.print(f"[red]Critical service(s) failed: {', '.join(failed_critical)}[/red]")
        raise typer.Exit(1)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
