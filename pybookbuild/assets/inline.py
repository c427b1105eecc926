"""Embed local ``url(...)`` references of a stylesheet as data URIs."""

import base64
import logging
import mimetypes
import re
from pathlib import Path
from urllib.parse import unquote

from ..errors import CompileError, ConfigError
from ._output import write_atomic

logger = logging.getLogger(__name__)

url_pattern = re.compile(r"""url\(\s*(['"]?)(.*?)\1\s*\)""", re.DOTALL)

# mimetypes does not know web fonts on every platform
_FONT_TYPES = {
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
    ".otf": "font/otf",
    ".eot": "application/vnd.ms-fontobject",
    ".svg": "image/svg+xml",
}

_REMOTE_PREFIXES = ("http:", "https:", "//", "data:", "#")


def is_local(target):
    return bool(target) and not target.lower().startswith(_REMOTE_PREFIXES)


def guess_mime(path):
    suffix = Path(path).suffix.lower()
    if suffix in _FONT_TYPES:
        return _FONT_TYPES[suffix]
    mime, _ = mimetypes.guess_type(str(path))
    return mime or "application/octet-stream"


def data_uri(path):
    payload = base64.b64encode(Path(path).read_bytes()).decode("ascii")
    return f"data:{guess_mime(path)};base64,{payload}"


def inline_css(css_text, base_dir):
    """Return ``css_text`` with every local url() replaced by a data URI."""
    base_dir = Path(base_dir)

    def repl(match):
        target = match.group(2).strip()
        if not is_local(target):
            return match.group(0)
        # strip cache busters and fragments before touching the filesystem
        local = re.split(r"[?#]", target, maxsplit=1)[0]
        path = base_dir / unquote(local)
        if not path.is_file():
            raise CompileError(f"Cannot inline {target}: {path} not found")
        return f'url("{data_uri(path)}")'

    return url_pattern.sub(repl, css_text)


def inline_styles(config):
    """Inline the compiled stylesheet into ``config.inlined_css``."""
    source = config.path(config.compiled_css)
    if not source.exists():
        raise ConfigError(
            f"Compiled stylesheet {config.compiled_css} is missing;"
            " compile the styles first"
        )
    base_dir = config.path(config.assets.stylesheet).parent
    text = inline_css(source.read_text(encoding="utf-8"), base_dir)
    target = write_atomic(config.path(config.inlined_css), text)
    logger.info("inlined %s -> %s", config.compiled_css, config.inlined_css)
    return target
