import os
import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.traceback import install

# ignore errors from these libs
import tomlkit, websockets

from config import LOG_LEVELS

console = Console()

_print = print  # save python's print.

print = console.print  # raw print


def setup_logging(level: Optional[str] = None):
    FORMAT = "%(message)s"
    env_level = os.environ.get("LOGLEVEL", "").upper()
    level = env_level if env_level in LOG_LEVELS else (level or "INFO").upper()
    logging_handler = RichHandler(
        level=level,
        console=console,
        rich_tracebacks=True,
        tracebacks_suppress=[tomlkit, websockets]
    )

    logging.basicConfig(
        level="NOTSET", format=FORMAT, datefmt="[%X]", handlers=[logging_handler], force=True
    )
    # handshake chatter
    logging.getLogger("websockets").setLevel("NOTSET" if level == "DEBUG" else "WARNING")

    install(
        console = console
    )


def banner(host: str, port: int):
    print(Panel.fit(
        f"[bold]🔔 Call Me - Server Running[/bold]\n"
        f"http://{host or 'localhost'}:{port}\n"
        f"WebSocket ready",
        style="blue"
    ))
