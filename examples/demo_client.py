#!/usr/bin/env python3
"""
Demo script for the Toolset Gateway.

Shows how the server scopes toolsets per client: each scenario sends a
different client id (and, for permission-based servers, a different
permission header) and prints what that client can see.
"""

import asyncio

import httpx
from rich.console import Console
from rich.table import Table

console = Console()

API_BASE_URL = "http://localhost:8001"


async def run_demo():
    """Run the complete demo."""
    async with httpx.AsyncClient(base_url=API_BASE_URL) as client:
        console.print("\n[bold cyan]Toolset Gateway Demo[/bold cyan]\n")

        health = await client.get("/healthz")
        health.raise_for_status()

        console.print("[bold]Server status[/bold]")
        await show_status(client)

        console.print("\n[bold]Scenario 1:[/bold] Named client gets a cached bundle")
        await show_client(client, {"mcp-client-id": "alice"})
        await show_client(client, {"mcp-client-id": "alice"})

        console.print("\n[bold]Scenario 2:[/bold] Anonymous client gets a one-off bundle")
        await show_client(client, {})

        console.print("\n[bold]Scenario 3:[/bold] Client asking for toolsets through the permission header")
        await show_client(client, {"mcp-client-id": "bob", "mcp-toolset-permissions": "core,ext"})


async def show_status(client):
    data = (await client.get("/tools")).json()

    table = Table(title="Toolsets")
    table.add_column("Toolset", style="cyan")
    table.add_column("Active", style="green")
    table.add_column("Tools", style="yellow")

    for name in data["availableToolsets"]:
        table.add_row(
            name,
            "yes" if name in data["activeToolsets"] else "no",
            ", ".join(data["toolsetToTools"].get(name, [])),
        )

    console.print(table)


async def show_client(client, headers):
    """Print the toolsets visible to one client."""
    response = await client.get("/clients/toolsets", headers=headers)
    if response.status_code == 403:
        console.print(f"  ❌ Denied: {response.json()['detail']}")
        return
    data = response.json()

    console.print(f"  🆔 Client: {data['client_id']} ({data['mode']})")
    console.print(f"  ✅ Allowed: {', '.join(data['allowed_toolsets']) or 'none'}")
    if data["failed_toolsets"]:
        console.print(f"  ⚠️  Failed: {', '.join(data['failed_toolsets'])}")
    console.print(f"  🧰 Tools: {', '.join(data['tools']) or 'none'}")


if __name__ == "__main__":
    console.print("[bold green]Starting Toolset Gateway Demo...[/bold green]")
    console.print(
        "\n[yellow]Make sure the server is running with:[/yellow] "
        "TOOLSET_GATEWAY_PERMISSIONS_FROM_HEADERS=true toolset-gateway\n"
    )

    try:
        asyncio.run(run_demo())
    except httpx.ConnectError:
        console.print("[bold red]ERROR:[/bold red] Could not connect to server!")
        console.print("Start the server with: [cyan]toolset-gateway[/cyan]")
    except KeyboardInterrupt:
        console.print("\n[yellow]Demo interrupted by user[/yellow]")
    except Exception as e:
        console.print(f"[bold red]ERROR:[/bold red] {e}")
