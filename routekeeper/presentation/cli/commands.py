"""CLI Commands Registration Module

This module centralizes the registration of CLI commands. Every command goes
through the global RouteService, so the CLI sees exactly what the web API
sees.

The module handles:
- Database initialization
- Route listing, display and dependency inspection
- Route deletion with ownership rebind targets
- Bulk import from CSV files and import history
- Web interface startup with configurable parameters
"""

import os
from pathlib import Path
from typing import Optional

import typer

from routekeeper.domain.errors import MissingRebindTargetError, RouteKeeperError
from routekeeper.domain.models import Relation, Route
from routekeeper.domain.status import ImportStatus
from routekeeper.infrastructure.logging_config import get_logger

# Create module logger
command_logger = get_logger("routekeeper.cli.commands")


def _service():
    from routekeeper.application.services.route_service import get_route_service

    return get_route_service()


def _format_route(route: Route) -> str:
    coords = route.coordinates
    start = route.from_location
    end = route.to_location
    return (
        f"#{route.id} {route.name} | coords=({coords.x}, {coords.y}) | "
        f"from=({start.x}, {start.y}){' ' + start.name if start.name else ''} -> "
        f"to=({end.x}, {end.y}){' ' + end.name if end.name else ''} | "
        f"distance={route.distance} rating={route.rating}"
    )


def _fail(e: Exception) -> None:
    typer.echo(f"❌ Error: {e}")
    raise typer.Exit(1)


def register_commands(app: typer.Typer) -> None:
    """Register all CLI commands in the Typer application.

    Args:
        app: Typer application instance to register commands with
    """
    command_logger.info("Registering CLI commands in Typer")

    @app.command(name="init-db")
    def init_db() -> None:
        """Create the database schema if it does not exist."""
        try:
            service = _service()
            typer.echo(f"✅ Database ready: {service.store.database_url}")
        except Exception as e:  # noqa: BLE001
            _fail(e)

    @app.command(name="list")
    def list_routes(
        name: Optional[str] = typer.Option(None, "--name", "-n", help="Name substring"),
        sort_by: Optional[str] = typer.Option(None, "--sort-by", help="id, name, distance or rating"),
        direction: Optional[str] = typer.Option(None, "--direction", help="asc or desc"),
        page: int = typer.Option(0, "--page", help="Zero-based page index"),
        size: Optional[int] = typer.Option(None, "--size", help="Page size"),
        show_all: bool = typer.Option(False, "--all", help="Every match, no paging"),
    ) -> None:
        """List routes, one offset page at a time or all at once."""
        try:
            if show_all:
                routes = _service().list_all_routes(name, sort_by, direction)
                total = len(routes)
            else:
                routes, total = _service().list_routes(
                    page=page, size=size, name_filter=name, sort=sort_by, direction=direction
                )
        except RouteKeeperError as e:
            _fail(e)

        if not routes:
            typer.echo("📭 No routes found")
            return
        heading = "all" if show_all else f"page {page}"
        typer.echo(f"📋 Routes ({heading}, {total} total):")
        for route in routes:
            typer.echo(f"  • {_format_route(route)}")

    @app.command()
    def show(route_id: int = typer.Argument(..., help="Route id")) -> None:
        """Show one route."""
        try:
            route = _service().get_route(route_id)
        except RouteKeeperError as e:
            _fail(e)
        typer.echo(_format_route(route))
        typer.echo(f"  Created: {route.creation_date.isoformat()}")

    @app.command()
    def deps(route_id: int = typer.Argument(..., help="Route id")) -> None:
        """Show which other routes share this route's values."""
        try:
            report = _service().check_dependencies(route_id)
        except RouteKeeperError as e:
            _fail(e)

        typer.echo(f"🔗 Dependencies of route {route_id}:")
        for dependency in report.relations():
            owner = "owner" if dependency.is_owner else "not owner"
            typer.echo(
                f"  {dependency.relation.value}: object {dependency.object_id} ({owner}), "
                f"used by {dependency.usage_count} other route(s)"
            )
            if dependency.needs_rebind:
                candidates = ", ".join(str(r.id) for r in dependency.candidates)
                typer.echo(f"    ⚠️  rebind required, candidates: {candidates}")

    @app.command()
    def delete(
        route_id: int = typer.Argument(..., help="Route id"),
        coordinates_target: Optional[int] = typer.Option(
            None, "--coordinates-target", help="New owner of the coordinates"
        ),
        from_target: Optional[int] = typer.Option(
            None, "--from-target", help="New owner of the start location"
        ),
        to_target: Optional[int] = typer.Option(
            None, "--to-target", help="New owner of the end location"
        ),
    ) -> None:
        """Delete a route, rebinding shared values it owns when required."""
        targets = {
            Relation.COORDINATES: coordinates_target,
            Relation.FROM: from_target,
            Relation.TO: to_target,
        }
        try:
            plan = _service().delete_route(route_id, targets)
        except MissingRebindTargetError as e:
            typer.echo(f"❌ {e}")
            typer.echo(f"💡 Run 'routekeeper deps {route_id}' to see rebind candidates")
            raise typer.Exit(1)
        except RouteKeeperError as e:
            _fail(e)

        typer.echo(f"🗑️  Route {route_id} deleted")
        for decision in plan.decisions:
            target = f" -> route {decision.target_route_id}" if decision.target_route_id else ""
            typer.echo(f"  {decision.relation.value}: {decision.action.value}{target}")

    @app.command(name="import")
    def import_file(
        file: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV file"),
        user: str = typer.Option(
            os.getenv("USER", "cli"), "--user", "-u", help="User recorded on the import"
        ),
    ) -> None:
        """Import routes from a CSV file, all or nothing."""
        try:
            content = file.read_text(encoding="utf-8")
            operation = _service().imports.import_routes(user, file.name, content)
        except (OSError, RouteKeeperError) as e:
            _fail(e)

        if operation.status is ImportStatus.SUCCESS:
            typer.echo(f"✅ Imported {operation.successful_records} route(s) from {file.name}")
            return
        typer.echo(f"❌ Import {operation.id} failed: {operation.error_message}")
        for error in operation.errors:
            typer.echo(f"  • {error}")
        raise typer.Exit(1)

    @app.command()
    def history(
        user: str = typer.Option(os.getenv("USER", "cli"), "--user", "-u"),
        page: int = typer.Option(0, "--page"),
        size: int = typer.Option(10, "--size"),
    ) -> None:
        """List a user's import operations, newest first."""
        try:
            operations = _service().imports.history(user, page, size)
        except RouteKeeperError as e:
            _fail(e)

        if not operations:
            typer.echo("📭 No import operations found")
            return
        for op in operations:
            typer.echo(
                f"  • #{op.id} {op.filename}: {op.status.value} "
                f"({op.successful_records}/{op.total_records}) {op.start_time.isoformat()}"
            )

    @app.command()
    def stats(user: str = typer.Option(os.getenv("USER", "cli"), "--user", "-u")) -> None:
        """Import totals for a user."""
        result = _service().imports.stats(user)
        typer.echo(f"📊 Imports for {user}:")
        typer.echo(f"  Total: {result.total_operations}")
        typer.echo(f"  Successful: {result.successful_operations}")
        typer.echo(f"  Failed: {result.failed_operations}")

    @app.command()
    def web(
        host: str = typer.Option(None, "--host", "-h", help="Host to bind to"),
        port: int = typer.Option(None, "--port", "-p", help="Port to bind to"),
        dev: bool = typer.Option(None, "--dev", help="Run in development mode"),
    ) -> None:
        """Start the web API.

        Host and port default to the loaded settings (WEB_HOST, PORT).
        """
        try:
            from routekeeper.infrastructure.settings import get_settings

            settings = get_settings()
            host = host if host is not None else settings.web_host
            port = int(port) if port is not None else settings.web_port

            debug_env = os.getenv("WEB_DEBUG", "false").lower() == "true"
            debug = dev if dev is not None else debug_env
            log_level = os.getenv("WEB_LOG_LEVEL", "info" if debug else "warning")

            typer.echo("🌐 Starting RouteKeeper Web API...")
            typer.echo("🖥️  Host: %s" % host)
            typer.echo("🔌 Port: %s" % port)
            typer.echo("🛠️  Mode: %s" % ("Development" if debug else "Production"))

            import uvicorn

            uvicorn.run(
                "routekeeper.presentation.web.app:app",
                host=host,
                port=port,
                reload=debug,
                log_level=log_level,
            )
        except KeyboardInterrupt:
            typer.echo("\n🛑 Web server stopped")
        except Exception as e:  # noqa: BLE001
            typer.echo("❌ Error starting web server: %s" % e)
            raise typer.Exit(1)
