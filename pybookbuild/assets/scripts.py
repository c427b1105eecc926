"""Bundle the CoffeeScript entry point with ``browserify``."""

import logging

from ..errors import CompileError, ConfigError
from ..process import log_output, run_process
from ._output import write_atomic

logger = logging.getLogger(__name__)


def bundle_command(config):
    assets = config.assets
    cmd = [assets.browserify, assets.script]
    for transform in assets.transforms:
        cmd.extend(["-t", transform])
    for extension in assets.extensions:
        cmd.append(f"--extension={extension}")
    # uglifyify runs as a global transform so it also minifies dependencies
    if config.minify:
        cmd.extend(assets.js_minify_args)
    return cmd


def bundle_scripts(config, runner=run_process):
    """Resolve the script's module graph into one bundle file."""
    if not config.path(config.assets.script).exists():
        raise ConfigError(f"Script entry point not found: {config.assets.script}")
    result = runner(bundle_command(config), cwd=config.root)
    log_output(result, stdout=False)
    if not result.ok:
        raise CompileError(f"Script bundling failed: {result.describe()}")
    target = write_atomic(config.path(config.bundle), result.stdout)
    logger.info("bundled %s -> %s", config.assets.script, config.bundle)
    return target
