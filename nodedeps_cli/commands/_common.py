"""Helpers shared by the command modules."""

import asyncio
import contextlib
import logging
import signal
import sys
from collections.abc import Awaitable
from collections.abc import Callable
from pathlib import Path
from typing import NoReturn
from typing import TypeVar

from ..console import err_console
from ..errors import NodeDepsError
from ..errors import ToolInvocationError
from ..settings import ResolutionSettings
from ..settings import SettingsManager
from ..utils.error_format import escape_markup
from ..utils.error_format import format_error_message
from ..utils.error_format import format_tool_error
from ..utils.process import CancellationToken

logger = logging.getLogger(__name__)

T = TypeVar("T")


def load_settings(project_dir: Path) -> ResolutionSettings:
    """Resolution settings for project_dir (its .nodedeps folder plus user scope)."""
    return SettingsManager(settings_dir=project_dir / ".nodedeps").get_resolution_settings()


def run_cancellable(operation: Callable[[CancellationToken], Awaitable[T]]) -> T:
    """Run operation on a fresh event loop; Ctrl-C cancels it through the token."""
    token = CancellationToken()

    async def runner() -> T:
        loop = asyncio.get_running_loop()
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(signal.SIGINT, token.cancel)
        try:
            return await operation(token)
        finally:
            with contextlib.suppress(NotImplementedError):
                loop.remove_signal_handler(signal.SIGINT)

    return asyncio.run(runner())


def fail(e: NodeDepsError) -> NoReturn:
    """Report e on stderr and exit with status 1."""
    logger.error(format_error_message(e), exc_info=e)
    if isinstance(e, ToolInvocationError):
        lines = format_tool_error(e)
        err_console.print(f"[red]Error:[/red] {escape_markup(lines[0])}")
        for line in lines[1:]:
            err_console.print(f"[dim]  {escape_markup(line)}[/dim]")
    else:
        err_console.print(f"[red]Error:[/red] {escape_markup(format_error_message(e, include_type=False))}")
    sys.exit(1)
