"""External process invocation with cooperative cancellation.

The resolver never talks to npm or yarn directly; it goes through execute(),
which captures output up to a size cap, enforces an optional timeout and lets a
CancellationToken kill the child and reject the pending call.
"""

import asyncio
import contextlib
import logging
import os
import shutil
import signal
from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path

from ..errors import CancellationError
from ..errors import ToolInvocationError

logger = logging.getLogger(__name__)

# Dependency listings get large; 1 MiB is the default cap for captured output.
DEFAULT_MAX_BUFFER = 1024 * 1024

_READ_CHUNK = 64 * 1024

# Seconds a signalled child gets to exit before it is killed outright.
KILL_GRACE = 2.0


class CancellationToken:
    """Cancellation signal shared between a caller and pending operations.

    Operations subscribe a callback; cancel() delivers the carried error to
    every current subscriber exactly once. A subscription made after
    cancellation is notified immediately.
    """

    def __init__(self):
        self._callbacks: dict[int, Callable[[BaseException], None]] = {}
        self._next_id = 0
        self._error: BaseException | None = None

    @property
    def is_cancelled(self) -> bool:
        return self._error is not None

    @property
    def error(self) -> BaseException | None:
        """The error carried by cancel(), or None while not cancelled."""
        return self._error

    def subscribe(self, callback: Callable[[BaseException], None]) -> Callable[[], None]:
        """Register callback; returns a function that removes it again."""
        if self._error is not None:
            callback(self._error)
            return lambda: None

        key = self._next_id
        self._next_id += 1
        self._callbacks[key] = callback

        def dispose() -> None:
            self._callbacks.pop(key, None)

        return dispose

    def cancel(self, error: BaseException | None = None) -> None:
        """Cancel with error (default: CancellationError). Repeat calls are ignored."""
        if self._error is not None:
            return

        self._error = error or CancellationError("Operation cancelled")
        callbacks = list(self._callbacks.values())
        self._callbacks.clear()
        for callback in callbacks:
            callback(self._error)


@dataclass
class ExecOptions:
    """Knobs passed through to a single process invocation."""

    cwd: str | Path | None = None
    env: dict[str, str] | None = None  # merged over os.environ
    timeout: float | None = None
    max_buffer: int = DEFAULT_MAX_BUFFER
    kill_signal: signal.Signals = signal.SIGTERM


@dataclass
class ExecResult:
    stdout: str
    stderr: str
    command: list[str] = field(default_factory=list)


def first_line(text: str) -> str:
    """Return the first non-empty line of text ("" if there is none)."""
    for line in text.splitlines():
        if line:
            return line
    return ""


async def execute(
    command: list[str],
    options: ExecOptions | None = None,
    cancellation_token: CancellationToken | None = None,
) -> ExecResult:
    """Run command and capture its output.

    Args:
        command: Executable and arguments (no shell involved)
        options: Working directory, environment, timeout, output cap, kill signal
        cancellation_token: Optional token; cancelling kills the child

    Returns:
        ExecResult with decoded stdout and stderr

    Raises:
        ToolInvocationError: Executable missing, non-zero exit, output over the
            cap, or timeout
        BaseException: Whatever error the cancellation token carries
    """
    options = options or ExecOptions()
    env = {**os.environ, **options.env} if options.env else None
    display = " ".join(command)

    logger.debug(f"[process] running '{display}' in {options.cwd or os.getcwd()}")

    if cancellation_token is not None and cancellation_token.error is not None:
        raise cancellation_token.error

    # which() honours PATHEXT, so npm.cmd/yarn.cmd shims are found on Windows.
    executable = shutil.which(command[0], path=(env or os.environ).get("PATH"))
    if executable is None:
        raise ToolInvocationError(f"Command not found: {command[0]}", command=command)

    try:
        proc = await asyncio.create_subprocess_exec(
            executable,
            *command[1:],
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(options.cwd) if options.cwd is not None else None,
            env=env,
        )
    except FileNotFoundError as e:
        raise ToolInvocationError(f"Command not found: {command[0]}", command=command) from e

    loop = asyncio.get_running_loop()
    cancelled: asyncio.Future = loop.create_future()
    collector = asyncio.ensure_future(_collect(proc, command, options.max_buffer))

    def on_cancel(error: BaseException) -> None:
        # Once the child has exited its output is only draining; the result stands.
        if collector.done() or proc.returncode is not None:
            return
        _send_signal(proc, options.kill_signal)
        if not cancelled.done():
            cancelled.set_exception(error)

    dispose = cancellation_token.subscribe(on_cancel) if cancellation_token is not None else None

    try:
        done, _pending = await asyncio.wait(
            {collector, cancelled},
            timeout=options.timeout,
            return_when=asyncio.FIRST_COMPLETED,
        )

        if collector not in done:
            await _abandon(proc, collector, options.kill_signal)
            if cancelled in done:
                logger.debug(f"[process] '{display}' cancelled")
                raise cancelled.exception()
            raise ToolInvocationError(
                f"Command timed out after {options.timeout}s: {display}",
                command=command,
            )

        try:
            stdout_bytes, stderr_bytes = collector.result()
        except ToolInvocationError:
            await _abandon(proc, collector, options.kill_signal)
            raise
    finally:
        if dispose is not None:
            dispose()
        if cancelled.done():
            # Cancelled after the child had already finished: result stands.
            cancelled.exception()
        else:
            cancelled.cancel()
        if proc.returncode is None and not collector.done():
            _send_signal(proc, options.kill_signal)

    stdout = stdout_bytes.decode("utf-8", errors="replace")
    stderr = stderr_bytes.decode("utf-8", errors="replace")

    if proc.returncode != 0:
        detail = stderr.strip() or stdout.strip() or "(no output)"
        raise ToolInvocationError(
            f"Command failed with exit code {proc.returncode}: {display}\n{detail}",
            command=command,
            returncode=proc.returncode,
            stdout=stdout,
            stderr=stderr,
        )

    return ExecResult(stdout=stdout, stderr=stderr, command=list(command))


async def _collect(proc: asyncio.subprocess.Process, command: list[str], max_buffer: int) -> tuple[bytes, bytes]:
    async def read(stream: asyncio.StreamReader, name: str) -> bytes:
        chunks: list[bytes] = []
        size = 0
        while chunk := await stream.read(_READ_CHUNK):
            size += len(chunk)
            if size > max_buffer:
                raise ToolInvocationError(
                    f"{name} exceeded max buffer of {max_buffer} bytes: {' '.join(command)}",
                    command=command,
                )
            chunks.append(chunk)
        return b"".join(chunks)

    assert proc.stdout is not None and proc.stderr is not None
    stdout, stderr = await asyncio.gather(read(proc.stdout, "stdout"), read(proc.stderr, "stderr"))
    await proc.wait()
    return stdout, stderr


async def _abandon(proc: asyncio.subprocess.Process, collector: asyncio.Future, kill_signal: signal.Signals) -> None:
    """Stop a child whose result is no longer wanted and reap it."""
    _send_signal(proc, kill_signal)
    collector.cancel()
    with contextlib.suppress(asyncio.CancelledError, ToolInvocationError):
        await collector
    try:
        await asyncio.wait_for(proc.wait(), KILL_GRACE)
    except TimeoutError:
        logger.warning(f"[process] pid {proc.pid} ignored {kill_signal.name}, killing it")
        with contextlib.suppress(ProcessLookupError):
            proc.kill()
        await proc.wait()


def _send_signal(proc: asyncio.subprocess.Process, kill_signal: signal.Signals) -> None:
    if proc.returncode is not None:
        return
    with contextlib.suppress(ProcessLookupError):
        proc.send_signal(kill_signal)
