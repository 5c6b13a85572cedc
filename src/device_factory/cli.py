"""Typer CLI for the device factory service."""

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(name="dfm", help="Device factory data manager")
console = Console()


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(8080, help="Bind port"),
):
    """Start the device factory API server."""
    import uvicorn
    from device_factory.app import create_app

    console.print(f"[bold green]Starting device factory engine on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


@app.command("mandatory-params")
def mandatory_params():
    """Show the configured mandatory fields per device type."""
    from device_factory.common.config import get_settings

    settings = get_settings()
    try:
        table_data = settings.mandatory_params
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    table = Table(title=f"Creation type: {settings.device_creation_type}")
    table.add_column("Device type", style="bold")
    table.add_column("Allowed")
    table.add_column("Mandatory fields")
    allowed = {t.lower() for t in settings.allowed_device_types}
    for device_type, fields in sorted(table_data.items()):
        table.add_row(
            device_type,
            "yes" if device_type in allowed else "[red]no[/red]",
            ", ".join(fields) or "[red]none[/red]",
        )
    console.print(table)


@app.command()
def health(
    url: str = typer.Option("http://localhost:8080", help="Server URL"),
):
    """Check device factory server health."""
    import httpx

    try:
        resp = httpx.get(f"{url}/health", timeout=5)
        data = resp.json()
        console.print(f"[bold green]{data['status']}[/bold green] v{data['version']}")
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
