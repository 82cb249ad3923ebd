"""Error types raised while resolving production dependency directories.

Every failure the resolver surfaces derives from NodeDepsError so the CLI can
report it with a single handler. Unresolvable tree nodes are not errors: they
are pruned silently by the tree builder.
"""


class NodeDepsError(Exception):
    """Base class for all resolver failures."""


class ToolInvocationError(NodeDepsError):
    """An external package-manager process failed or produced unusable output."""

    def __init__(
        self,
        message: str,
        *,
        command: list[str] | None = None,
        returncode: int | None = None,
        stdout: str = "",
        stderr: str = "",
    ):
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class IncompatibleToolVersionError(ToolInvocationError):
    """A known-broken package-manager release was detected."""

    def __init__(self, message: str, *, version: str, command: list[str] | None = None):
        super().__init__(message, command=command)
        self.version = version


class MalformedOutputError(ToolInvocationError):
    """The tree listing did not contain exactly one parseable tree document."""


class SelectionError(NodeDepsError):
    """The allow-list and the resolved top-level dependencies disagree."""

    def __init__(self, message: str, *, name: str):
        super().__init__(message)
        self.name = name


class DuplicateNameError(SelectionError):
    """Two top-level dependencies share a name."""


class UnknownNameError(SelectionError):
    """An allow-listed name has no top-level dependency."""


class CancellationError(NodeDepsError):
    """The caller cancelled a pending operation."""


class ConfigurationError(NodeDepsError):
    """Settings files or environment overrides hold invalid values."""
