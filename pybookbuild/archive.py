"""Bundle the finished editions into one distributable zip file."""

import logging
import zipfile
from pathlib import Path

from .errors import ConfigError

logger = logging.getLogger(__name__)

PACKAGED_FORMATS = ("html", "pdf", "epub")

# fixed timestamp so identical outputs always give identical archives
ZIP_DATE = (1980, 1, 1, 0, 0, 0)


def package_outputs(config, formats=PACKAGED_FORMATS):
    """Write ``config.archive`` containing the output file of each format."""
    files = [config.path(config.profiles[fmt].output) for fmt in formats]
    missing = [str(p) for p in files if not p.is_file()]
    if missing:
        raise ConfigError(f"Cannot package, missing outputs: {', '.join(missing)}")
    archive = config.path(config.archive)
    archive.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(archive, "w", zipfile.ZIP_DEFLATED) as zf:
        for path in sorted(files, key=lambda p: p.name):
            info = zipfile.ZipInfo(Path(path).name, date_time=ZIP_DATE)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.external_attr = 0o644 << 16
            zf.writestr(info, path.read_bytes())
    logger.info("packaged %d files into %s", len(files), config.archive)
    return archive
