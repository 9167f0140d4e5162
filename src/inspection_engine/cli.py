"""Typer CLI for Inspection-Engine."""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(name="inspection-engine", help="Inspection-Engine: equipment inspection management")
console = Console()


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(8080, help="Bind port"),
):
    """Start the Inspection-Engine API server."""
    import uvicorn
    from inspection_engine.app import create_app

    console.print(f"[bold green]Starting Inspection-Engine on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


async def _create_admin(email: str, password: str, full_name: str):
    from inspection_engine.auth.policy import Role
    from inspection_engine.deps import get_auth_service, get_db

    db = get_db()
    await db.init()
    await db.create_all()
    try:
        async with db.get_session() as session:
            return await get_auth_service().create_user(
                session, email, password, full_name, role=Role.ADMIN.value
            )
    finally:
        await db.close()


@app.command("create-admin")
def create_admin(
    email: str = typer.Argument(..., help="Admin email"),
    full_name: str = typer.Option("Administrador", help="Display name"),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
):
    """Create an admin account in the configured database."""
    from inspection_engine.common.exceptions import InspectionEngineError

    try:
        user = asyncio.run(_create_admin(email, password, full_name))
    except InspectionEngineError as e:
        console.print(f"[bold red]{e.code}[/bold red] — {e.message}")
        raise typer.Exit(1)
    console.print(f"[bold green]Created admin[/bold green] {user.email} ({user.id})")


@app.command()
def checklist(
    process_type: str = typer.Option(None, help="Show only the columns used by this process type"),
):
    """Print the inspection checklist catalog."""
    from inspection_engine.inspections.checklist import CATEGORIES, catalog_size, visible_columns

    table = Table(title=f"Checklist ({catalog_size()} items)")
    table.add_column("Category")
    table.add_column("Item")
    for key, entry in CATEGORIES.items():
        for description in entry["items"]:
            table.add_row(entry["name"], description)
    console.print(table)
    if process_type:
        columns = ", ".join(visible_columns(process_type))
        console.print(f"Columns for [bold]{process_type}[/bold]: {columns}")


@app.command()
def health(
    url: str = typer.Option("http://localhost:8080", help="Server URL"),
):
    """Check Inspection-Engine server health."""
    import httpx

    try:
        resp = httpx.get(f"{url}/health", timeout=5)
        data = resp.json()
        console.print(f"[bold green]{data['status']}[/bold green] — v{data['version']}")
    except (httpx.HTTPError, ValueError, KeyError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
