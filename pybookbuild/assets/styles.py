"""Compile the LESS stylesheet with ``lessc``."""

import logging
import os

from ..errors import CompileError, ConfigError
from ..process import log_output, run_process
from ._output import write_atomic

logger = logging.getLogger(__name__)


def styles_command(config):
    assets = config.assets
    cmd = [assets.lessc]
    if assets.include_paths:
        cmd.append("--include-path=" + os.pathsep.join(assets.include_paths))
    if config.minify:
        cmd.extend(assets.css_minify_args)
    cmd.append(assets.stylesheet)
    return cmd


def compile_styles(config, runner=run_process):
    """Compile ``assets.stylesheet`` into the temporary CSS file.

    The CSS is read from lessc's standard output and only written once the
    compiler has succeeded, so a failed compile leaves the previous file (or
    nothing) in place.
    """
    if not config.path(config.assets.stylesheet).exists():
        raise ConfigError(
            f"Stylesheet not found: {config.assets.stylesheet}"
        )
    result = runner(styles_command(config), cwd=config.root)
    log_output(result, stdout=False)
    if not result.ok:
        raise CompileError(f"Stylesheet compilation failed: {result.describe()}")
    target = write_atomic(config.path(config.compiled_css), result.stdout)
    logger.info("compiled %s -> %s", config.assets.stylesheet, config.compiled_css)
    return target
