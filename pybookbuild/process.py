"""Run external tools and report a structured outcome instead of raising."""

import logging
import subprocess
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    args: tuple
    returncode: int | None = None
    stdout: str = ""
    stderr: str = ""
    error: str | None = None

    @property
    def ok(self):
        return self.error is None and self.returncode == 0

    def describe(self):
        """One-line explanation of a failure, suitable for the error log."""
        if self.error is not None:
            return f"could not start {self.args[0]}: {self.error}"
        return f"{self.args[0]} exited with code {self.returncode}"


def run_process(args, cwd=None):
    """Run ``args`` without a shell and wait for it to exit."""
    args = tuple(str(a) for a in args)
    logger.debug("running: %s", " ".join(args))
    try:
        completed = subprocess.run(
            list(args),
            cwd=cwd,
            capture_output=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as exc:
        return ProcessResult(args=args, error=exc.strerror or str(exc))
    return ProcessResult(
        args=args,
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )


def log_output(result, stdout=True):
    """Send captured stdout to INFO and stderr to WARNING, line by line."""
    if stdout:
        for line in result.stdout.splitlines():
            if line.strip():
                logger.info("%s: %s", result.args[0], line)
    for line in result.stderr.splitlines():
        if line.strip():
            logger.warning("%s: %s", result.args[0], line)
