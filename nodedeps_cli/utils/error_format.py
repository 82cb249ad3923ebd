"""Safe error message formatting utilities.

Ensures exceptions always have useful display messages, even when
their str() representation is empty (e.g., TimeoutError, CancelledError).
"""

from __future__ import annotations

import asyncio

from rich.markup import escape as _escape_markup

from ..errors import CancellationError
from ..errors import IncompatibleToolVersionError
from ..errors import ToolInvocationError

# Friendly messages for exception types whose str() may be empty
FRIENDLY_MESSAGES: dict[type, str] = {
    CancellationError: "Operation was cancelled.",
    TimeoutError: "Operation timed out.",
    asyncio.CancelledError: "Operation was cancelled.",
    KeyboardInterrupt: "Operation interrupted by user.",
}


def format_error_message(e: BaseException, *, include_type: bool = True) -> str:
    """Format an exception into a useful display message.

    Args:
        e: The exception to format
        include_type: Whether to include the exception type name

    Returns:
        A non-empty, user-friendly error message

    Examples:
        >>> format_error_message(CancellationError())
        'CancellationError: Operation was cancelled.'

        >>> format_error_message(ValueError("invalid input"), include_type=False)
        'invalid input'
    """
    error_str = str(e)
    error_type = type(e).__name__

    if error_str:
        if include_type and error_type not in error_str:
            return f"{error_type}: {error_str}"
        return error_str

    for exc_type, friendly_msg in FRIENDLY_MESSAGES.items():
        if isinstance(e, exc_type):
            return f"{error_type}: {friendly_msg}" if include_type else friendly_msg

    return f"{error_type}: (no additional details)"


def format_tool_error(e: ToolInvocationError) -> list[str]:
    """Lines describing a failed tool invocation, message first.

    Version errors already carry their remedy; other failures get the
    command and the tail of stderr when available.
    """
    lines = [format_error_message(e, include_type=False)]
    if isinstance(e, IncompatibleToolVersionError):
        return lines
    if e.command and " ".join(e.command) not in lines[0]:
        lines.append(f"command: {' '.join(e.command)}")
    stderr = e.stderr.strip()
    if stderr and stderr not in lines[0]:
        lines.extend(stderr.splitlines()[-5:])
    return lines


def escape_markup(value: object) -> str:
    """Escape a value for safe interpolation into Rich markup strings.

    Args:
        value: Any value to escape (will be converted to str)

    Returns:
        String safe for interpolation into Rich markup f-strings
    """
    return _escape_markup(str(value))
