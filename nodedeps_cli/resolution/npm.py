"""npm side: version gate, flat production listing and latest published version."""

import logging
import os
import re
import signal

from ..errors import IncompatibleToolVersionError
from ..utils.process import DEFAULT_MAX_BUFFER
from ..utils.process import CancellationToken
from ..utils.process import ExecOptions
from ..utils.process import execute
from ..utils.process import first_line

logger = logging.getLogger(__name__)

# npm 3.7.0 - 3.7.3 print broken `npm list` output.
BROKEN_NPM_VERSION = re.compile(r"^3\.7\.[0123]$")

NPM_VERSION_COMMAND = ["npm", "-v"]
NPM_LIST_COMMAND = ["npm", "list", "--production", "--parseable", "--depth=99999"]


def check_npm_version(version: str) -> None:
    """Reject npm releases known to produce unusable listings.

    Raises:
        IncompatibleToolVersionError: version is 3.7.0 through 3.7.3
    """
    version = version.strip()
    if BROKEN_NPM_VERSION.match(version):
        raise IncompatibleToolVersionError(
            f"npm@{version} doesn't work with nodedeps. Please update npm: npm install -g npm",
            version=version,
            command=NPM_VERSION_COMMAND,
        )


async def check_npm(
    cancellation_token: CancellationToken | None = None, options: ExecOptions | None = None
) -> str:
    """Run ``npm -v`` and gate on the result. Returns the npm version."""
    result = await execute(NPM_VERSION_COMMAND, options or ExecOptions(), cancellation_token)
    version = first_line(result.stdout).strip()
    check_npm_version(version)
    logger.debug(f"[npm] using npm@{version}")
    return version


def parse_parseable_listing(stdout: str) -> list[str]:
    """Keep the absolute paths from ``npm list --parseable`` output, first occurrence only."""
    lines = re.split(r"[\r\n]", stdout)
    return list(dict.fromkeys(line for line in lines if line and os.path.isabs(line)))


async def get_npm_dependencies(
    cwd: str | os.PathLike,
    *,
    max_buffer: int = DEFAULT_MAX_BUFFER,
    timeout: float | None = None,
    kill_signal: signal.Signals = signal.SIGTERM,
    cancellation_token: CancellationToken | None = None,
) -> list[str]:
    """List every installed production dependency directory under cwd.

    Raises:
        IncompatibleToolVersionError: Installed npm is a known-broken release
        ToolInvocationError: npm failed or its output was over max_buffer
    """
    await check_npm(cancellation_token, ExecOptions(timeout=timeout, kill_signal=kill_signal))
    result = await execute(
        NPM_LIST_COMMAND,
        ExecOptions(cwd=cwd, max_buffer=max_buffer, timeout=timeout, kill_signal=kill_signal),
        cancellation_token,
    )
    paths = parse_parseable_listing(result.stdout)
    logger.info(f"[npm] {len(paths)} production dependency paths under {cwd}")
    return paths


async def resolve_latest_published_version(
    name: str,
    cancellation_token: CancellationToken | None = None,
    *,
    timeout: float | None = None,
    kill_signal: signal.Signals = signal.SIGTERM,
) -> str:
    """Return the latest version of package name published to the npm registry."""
    options = ExecOptions(timeout=timeout, kill_signal=kill_signal)
    await check_npm(cancellation_token, options)
    result = await execute(["npm", "show", name, "version"], options, cancellation_token)
    version = first_line(result.stdout)
    logger.debug(f"[npm] latest {name} is {version!r}")
    return version
