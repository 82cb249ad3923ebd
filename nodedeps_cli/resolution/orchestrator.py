"""Pick a pipeline and flatten its result into a set of directories."""

import logging
import os
import signal
from collections.abc import Sequence

from ..utils.process import DEFAULT_MAX_BUFFER
from ..utils.process import CancellationToken
from ..utils.process import ExecOptions
from ..utils.process import execute
from .builder import TreeBuilder
from .models import ResolvedDependency
from .npm import get_npm_dependencies
from .selector import select_dependencies
from .yarn_tree import parse_yarn_tree

logger = logging.getLogger(__name__)

YARN_LOCKFILE = "yarn.lock"
YARN_LIST_COMMAND = ["yarn", "list", "--prod", "--json"]


async def get_yarn_production_dependencies(
    cwd: str | os.PathLike,
    packaged_dependencies: Sequence[str] | None = None,
    *,
    max_buffer: int = DEFAULT_MAX_BUFFER,
    timeout: float | None = None,
    kill_signal: signal.Signals = signal.SIGTERM,
    cancellation_token: CancellationToken | None = None,
) -> list[ResolvedDependency]:
    """Resolve the yarn production tree under cwd.

    Without packaged_dependencies every resolved top-level tree is returned
    (range placeholders pruned). With it, only what those names reach.
    """
    result = await execute(
        YARN_LIST_COMMAND,
        ExecOptions(
            cwd=cwd, env=dict(os.environ), max_buffer=max_buffer, timeout=timeout, kill_signal=kill_signal
        ),
        cancellation_token,
    )
    trees = parse_yarn_tree(result.stdout)

    using_packaged_dependencies = packaged_dependencies is not None
    deps = TreeBuilder(cwd).build(trees, prune=not using_packaged_dependencies)

    if using_packaged_dependencies:
        deps = select_dependencies(deps, packaged_dependencies)

    return deps


def flatten_paths(deps: Sequence[ResolvedDependency]) -> list[str]:
    """Paths of deps and all their descendants, pre-order."""
    return [path for dep in deps for path in dep.iter_paths()]


def has_yarn_lockfile(cwd: str | os.PathLike) -> bool:
    return os.path.exists(os.path.join(cwd, YARN_LOCKFILE))


async def get_yarn_dependencies(
    cwd: str | os.PathLike,
    packaged_dependencies: Sequence[str] | None = None,
    **kwargs,
) -> list[str]:
    """Directories of the yarn production closure, starting with cwd itself."""
    result = [os.path.abspath(cwd)]

    if has_yarn_lockfile(cwd):
        deps = await get_yarn_production_dependencies(cwd, packaged_dependencies, **kwargs)
        result.extend(flatten_paths(deps))
    else:
        logger.info(f"[resolve] no {YARN_LOCKFILE} in {cwd}, returning project directory only")

    return _unique(result)


async def resolve_dependency_paths(
    cwd: str | os.PathLike,
    use_yarn: bool = False,
    packaged_dependencies: Sequence[str] | None = None,
    *,
    max_buffer: int = DEFAULT_MAX_BUFFER,
    timeout: float | None = None,
    kill_signal: signal.Signals = signal.SIGTERM,
    cancellation_token: CancellationToken | None = None,
) -> list[str]:
    """Resolve the on-disk production dependency closure of the project at cwd.

    Args:
        cwd: Project directory
        use_yarn: Resolve through ``yarn list`` instead of ``npm list``
        packaged_dependencies: Optional allow-list of top-level names (yarn only)
        max_buffer: Cap on captured tool output, in bytes
        timeout: Per-invocation timeout in seconds
        kill_signal: Signal sent to a tool that is cancelled or times out
        cancellation_token: Cancels the running tool

    Returns:
        Absolute directories, deduplicated, first occurrence wins; always
        contains cwd exactly once
    """
    cwd = os.path.abspath(cwd)
    logger.info(f"[resolve] {'yarn' if use_yarn else 'npm'} pipeline for {cwd}")

    options = {
        "max_buffer": max_buffer,
        "timeout": timeout,
        "kill_signal": kill_signal,
        "cancellation_token": cancellation_token,
    }
    if use_yarn:
        paths = await get_yarn_dependencies(cwd, packaged_dependencies, **options)
    else:
        if packaged_dependencies is not None:
            logger.warning("[resolve] npm pipeline ignores the dependency allow-list")
        # npm prints the real path of the project; keep the caller's spelling once.
        real_cwd = os.path.realpath(cwd)
        listed = await get_npm_dependencies(cwd, **options)
        paths = [cwd, *(path for path in listed if os.path.realpath(path) != real_cwd)]

    result = _unique(paths)
    logger.info(f"[resolve] {len(result)} directories")
    return result


def _unique(paths: Sequence[str]) -> list[str]:
    return list(dict.fromkeys(paths))
