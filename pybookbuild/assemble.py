"""Assemble one output format by running pandoc over the fragment list.

The pandoc command is built as an argument vector in a fixed order::

    pandoc <global> <output> <template> <filters> <layout> <metadata> <fragments>

Pandoc joins every trailing positional file into one document, so the
fragment list always comes last and in its declared order.
"""

import enum
import logging
from dataclasses import dataclass

from .config import FORMATS
from .errors import AssemblyError, ConfigError
from .process import log_output, run_process

logger = logging.getLogger(__name__)


class AssemblyState(enum.Enum):
    IDLE = "idle"
    BUILDING = "building"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class AssemblyResult:
    format: str
    state: AssemblyState
    returncode: int | None = None
    message: str = ""

    @property
    def ok(self):
        return self.state is AssemblyState.SUCCEEDED


def get_profile(config, fmt):
    if fmt not in FORMATS:
        raise ConfigError(
            f"Unknown format '{fmt}'; expected one of {', '.join(FORMATS)}"
        )
    if fmt not in config.profiles:
        raise ConfigError(f"No profile configured for format '{fmt}'")
    return config.profiles[fmt]


def filter_flags(filters):
    flags = []
    for path in filters:
        if path.endswith(".lua"):
            flags.append(f"--lua-filter={path}")
        else:
            flags.append(f"--filter={path}")
    return flags


def layout_flags(config, profile):
    flags = []
    if profile.pdf_engine:
        flags.append(f"--pdf-engine={profile.pdf_engine}")
    for key, value in profile.variables.items():
        flags.append(f"--variable={key}:{value}")
    for stylesheet in profile.css:
        flags.append(f"--css={stylesheet}")
    if profile.table_of_contents:
        flags.append("--table-of-contents")
        if profile.toc_depth is not None:
            flags.append(f"--toc-depth={profile.toc_depth}")
    if profile.number_sections:
        flags.append("--number-sections")
    if profile.chapters:
        flags.append("--top-level-division=chapter")
    if profile.standalone or profile.self_contained:
        flags.append("--standalone")
    if profile.self_contained:
        flags.append("--embed-resources")
    if profile.highlight and config.highlight_style:
        flags.append(f"--highlight-style={config.highlight_style}")
    return flags


def build_command(config, fmt):
    """Return the pandoc argument vector for ``fmt``."""
    profile = get_profile(config, fmt)
    cmd = ["pandoc", f"--from={config.input_format}"]
    cmd.extend([f"--to={profile.writer}", f"--output={profile.output}"])
    if profile.template:
        cmd.append(f"--template={profile.template}")
    cmd.extend(filter_flags(profile.filters))
    cmd.extend(layout_flags(config, profile))
    cmd.append(config.metadata)
    cmd.extend(config.fragments)
    return cmd


def check_sources(config, fmt):
    """Raise ConfigError for any input of ``fmt`` missing on disk."""
    profile = get_profile(config, fmt)
    required = [("metadata file", config.metadata)]
    if profile.template:
        required.append(("template", profile.template))
    required.extend(("filter", f) for f in profile.filters)
    required.extend(("fragment", f) for f in config.fragments)
    missing = [
        f"{kind} {path}"
        for kind, path in required
        if not config.path(path).exists()
    ]
    if missing:
        raise ConfigError(f"Missing sources for {fmt}: {', '.join(missing)}")


class DocumentAssembler:
    """Run pandoc once per requested format and track each format's state."""

    def __init__(self, config, runner=run_process):
        self.config = config
        self.runner = runner
        self.states = {fmt: AssemblyState.IDLE for fmt in FORMATS}

    def _finish(self, fmt, state, returncode=None, message=""):
        if fmt in self.states:
            self.states[fmt] = state
        return AssemblyResult(fmt, state, returncode, message)

    def assemble(self, fmt):
        """Build ``fmt`` and return an AssemblyResult; never raises."""
        config = self.config
        try:
            check_sources(config, fmt)
            cmd = build_command(config, fmt)
        except ConfigError as exc:
            # nothing is spawned for configuration errors
            logger.error("%s", exc)
            return self._finish(fmt, AssemblyState.FAILED, message=str(exc))

        self.states[fmt] = AssemblyState.BUILDING
        output = config.profiles[fmt].output
        config.path(output).parent.mkdir(parents=True, exist_ok=True)
        logger.info(
            "building %s from %d fragments", fmt, len(config.fragments)
        )
        result = self.runner(cmd, cwd=config.root)
        log_output(result)
        if not result.ok:
            message = result.describe()
            logger.error("%s build failed: %s", fmt, message)
            return self._finish(
                fmt, AssemblyState.FAILED, result.returncode, message
            )
        logger.info("wrote %s", output)
        return self._finish(fmt, AssemblyState.SUCCEEDED, result.returncode)


def assemble(config, fmt, runner=run_process):
    return DocumentAssembler(config, runner).assemble(fmt)


def assemble_step(config, fmt, runner=run_process):
    """Run ``assemble`` and turn a failed result into an AssemblyError."""
    result = assemble(config, fmt, runner)
    if not result.ok:
        raise AssemblyError(result.message)
    return result
