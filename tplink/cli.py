#!/usr/bin/env python3
"""
CLI for the TP-Link Archer C9 V1 router.

Usage:
    tplink list wired --url http://192.168.168.1 -U admin -P secret
    tplink list wireless --config tplink.yaml
    tplink reboot --url http://192.168.168.1 -U admin -P secret --yes
    python -m tplink.cli list wiredClients
"""

import argparse
import asyncio
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import List, Optional

import aiohttp
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import __version__
from .admin_actions import reboot
from .client import ClientConfig
from .config import Config, load_config
from .connections import Connection, list_wired_connections, list_wireless_connections
from .errors import RouterError

console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger("tplink")


def setup_logging(verbose: bool = False, level: str = "INFO", log_file: Optional[str] = None):
    """Setup logging with rich handler."""
    handlers = [
        RichHandler(console=err_console, show_time=True, show_path=False, rich_tracebacks=True)
    ]

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
        ))

    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        handlers=handlers,
    )


def resolve_settings(args) -> Config:
    """Load the config file (if any) and apply command line overrides."""
    settings = load_config(args.config) if args.config else Config()

    if args.url is not None:
        settings.router.url = args.url
    if args.user is not None:
        settings.router.username = args.user
    if args.password is not None:
        settings.router.password = args.password
    if args.timeout is not None:
        settings.http.timeout = args.timeout
    return settings


def print_connections(connections: List[Connection], transport: str) -> None:
    """Print connections as a table, or a placeholder when there are none."""
    if not connections:
        console.print(f"[yellow]No {transport} connections found[/yellow]")
        return

    table = Table(title=f"{transport.title()} clients")
    table.add_column("IP Address", style="cyan")
    table.add_column("MAC Address", style="green")
    table.add_column("Host Name")

    for conn in connections:
        table.add_row(escape(conn.ip_address), escape(conn.mac_address), escape(conn.name))

    console.print(table)
    console.print(f"\n[bold]{len(connections)} {transport} client(s)[/bold]")


def print_error(error: BaseException) -> None:
    """Print an error followed by its cause chain."""
    err_console.print(f"[red]Error: {escape(str(error))}[/red]", soft_wrap=True)
    cause = error.__cause__
    while cause is not None:
        err_console.print(f"[dim]  caused by: {escape(str(cause))}[/dim]", soft_wrap=True)
        cause = cause.__cause__


async def cmd_wired(args, client: ClientConfig):
    """List wired clients."""
    print_connections(await list_wired_connections(client), "wired")


async def cmd_wireless(args, client: ClientConfig):
    """List wireless clients."""
    print_connections(await list_wireless_connections(client), "wireless")


async def cmd_reboot(args, client: ClientConfig):
    """Reboot the router."""
    if not args.yes:
        if not console.input(f"[yellow]Reboot {escape(client.base_address)}? [y/N]: [/yellow]").lower().startswith("y"):
            console.print("[dim]Cancelled[/dim]")
            return

    console.print(f"[bold]Rebooting {escape(client.base_address)}...[/bold]")
    await reboot(client)
    console.print("[green]router rebooted![/green]")


async def run_command(args, settings: Config) -> None:
    """Build the client for the configured router and run the command."""
    timeout = aiohttp.ClientTimeout(total=settings.http.timeout)
    connector = aiohttp.TCPConnector(ssl=settings.http.verify_ssl)

    async with aiohttp.ClientSession(
        connector=connector,
        timeout=timeout,
        cookie_jar=aiohttp.DummyCookieJar(),
    ) as session:
        client = ClientConfig.create(
            settings.router.username,
            settings.router.password,
            settings.router.url,
            session=session,
            logger=logger,
        )
        await args.func(args, client)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tplink",
        description="Minimal admin interface to a TP-Link Archer C9 V1 wifi router",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Common router arguments
    def add_router_args(p):
        p.add_argument("--url", help="Router URL (default: http://192.168.168.1)")
        p.add_argument("--user", "-U", help="Router admin user name (default: admin)")
        p.add_argument("--password", "-P", help="Router admin password (default: admin)")
        p.add_argument("--config", "-c", help="Configuration file (YAML)")
        p.add_argument("--timeout", type=int, help="Request timeout in seconds")

    # Reboot command
    reboot_parser = subparsers.add_parser("reboot", help="Reboot the router")
    add_router_args(reboot_parser)
    reboot_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")
    reboot_parser.set_defaults(func=cmd_reboot)

    # List command
    list_parser = subparsers.add_parser("list", help="List information about the router")
    list_subparsers = list_parser.add_subparsers(dest="what", help="What to list")

    wired_parser = list_subparsers.add_parser(
        "wired", aliases=["wiredClients"], help="Currently connected wired clients")
    add_router_args(wired_parser)
    wired_parser.set_defaults(func=cmd_wired)

    wireless_parser = list_subparsers.add_parser(
        "wireless", aliases=["wirelessClients"], help="Currently connected wireless clients")
    add_router_args(wireless_parser)
    wireless_parser.set_defaults(func=cmd_wireless)

    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "func", None):
        parser.print_help()
        sys.exit(1)

    try:
        settings = resolve_settings(args)
    except Exception as e:
        print_error(e)
        sys.exit(1)

    setup_logging(args.verbose, settings.logging.level, settings.logging.file)

    try:
        asyncio.run(run_command(args, settings))
    except KeyboardInterrupt:
        err_console.print("\n[dim]Interrupted[/dim]")
        sys.exit(130)
    except RouterError as e:
        print_error(e)
        if args.verbose:
            err_console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    main()
