class BuildError(Exception):
    """Base class for failures that abort the current task."""


class ConfigError(BuildError):
    """Raised for invalid configuration or missing source files."""


class CompileError(BuildError):
    """Raised when a stylesheet or script fails to compile or inline."""


class AssemblyError(BuildError):
    """Raised when pandoc exits non-zero or cannot be started."""
