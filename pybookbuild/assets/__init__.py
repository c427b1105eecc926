"""Stylesheet and script compilation for the HTML and EPUB editions."""

from .inline import inline_css, inline_styles
from .scripts import bundle_command, bundle_scripts
from .styles import compile_styles, styles_command

__all__ = [
    "bundle_command",
    "bundle_scripts",
    "compile_styles",
    "inline_css",
    "inline_styles",
    "styles_command",
]
