"""The fixed table of named build commands."""

from functools import partial

from .archive import package_outputs
from .assemble import assemble_step
from .assets import bundle_scripts, compile_styles, inline_styles
from .command_registry import Step, TaskRegistry
from .process import run_process


def build_registry(config, runner=run_process, serve=None):
    """Return the TaskRegistry for ``config``.

    ``runner`` executes external tools and ``serve`` is the blocking
    preview loop; both are replaceable for testing.
    """
    if serve is None:
        from .watch import serve_and_watch as serve

    registry = TaskRegistry()

    def assemble(fmt):
        return Step(f"assemble-{fmt}", partial(assemble_step, config, fmt, runner))

    styles = registry.register(
        "compile-styles",
        "Compile the LESS stylesheet and inline its url() references",
        Step("compile-styles", partial(compile_styles, config, runner)),
        Step("inline-styles", partial(inline_styles, config)),
    )
    scripts = registry.register(
        "bundle-scripts",
        "Bundle the CoffeeScript entry point into one JavaScript file",
        Step("bundle-scripts", partial(bundle_scripts, config, runner)),
    )
    registry.register(
        "assemble-html",
        "Run pandoc for the HTML edition using the current assets",
        assemble("html"),
    )
    registry.register(
        "produce-json", "Produce the pandoc JSON AST", assemble("json")
    )
    html = registry.register(
        "produce-html",
        "Produce the self-contained HTML edition",
        styles,
        scripts,
        assemble("html"),
    )
    pdf = registry.register(
        "produce-pdf", "Produce the PDF edition", assemble("pdf")
    )
    epub = registry.register(
        "produce-epub", "Produce the EPUB edition", styles, assemble("epub")
    )
    everything = registry.register(
        "produce-all", "Produce the HTML, PDF and EPUB editions", html, pdf, epub
    )
    registry.register(
        "package",
        "Produce every edition and zip them into one archive",
        everything,
        Step("package-outputs", partial(package_outputs, config)),
    )
    registry.register(
        "serve",
        "Build the HTML edition, then serve it and rebuild on changes",
        html,
        Step("serve-and-watch", lambda: serve(config, registry)),
    )
    registry.alias("default", "package")
    return registry
