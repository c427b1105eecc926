import argparse
import logging
import sys

from .config import load_config
from .errors import ConfigError
from .process import run_process
from .tasks import build_registry

logger = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="pybb",
        description="Build the HTML, PDF, EPUB and JSON editions of the book",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
commands:
  produce-json     pandoc JSON AST only
  produce-html     compile assets, inline CSS, bundle scripts, build HTML
  produce-pdf      PDF only
  produce-epub     compile assets, inline CSS, build EPUB
  produce-all      html, pdf and epub in sequence
  package          produce-all, then zip the three editions
  serve            build HTML, serve the output directory, rebuild on change
  default          same as package
        """,
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="default",
        help="Command to run (default: %(default)s)",
    )
    parser.add_argument(
        "--minify",
        action="store_true",
        help="Minify the compiled stylesheet and script bundle",
    )
    return parser


def main(argv=None, runner=run_process):
    """Run one command and return the process exit code."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO, format="%(levelname)s %(name)s: %(message)s"
    )
    try:
        config = load_config(minify=args.minify)
        registry = build_registry(config, runner=runner)
        task = registry.get(args.command)
    except ConfigError as exc:
        logger.error("%s", exc)
        return 1
    if registry.run(task.name):
        return 0
    return 1


if __name__ == "__main__":
    sys.exit(main())
