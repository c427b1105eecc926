"""Load the immutable build configuration from ``book.yaml``.

Every value has a default that matches the conventional layout of the book
sources, so a project without ``book.yaml`` builds as long as it has a
``running.order`` file listing its chapters.
"""

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

import yaml

from .errors import ConfigError

CONFIG_NAME = "book.yaml"

FORMATS = ("html", "pdf", "epub", "json")

INPUT_FORMAT = (
    "markdown+smart+grid_tables+multiline_tables+fenced_code_blocks"
    "+fenced_code_attributes+yaml_metadata_block"
)


@dataclass(frozen=True)
class FormatProfile:
    """Pandoc settings for one output format."""

    name: str
    writer: str
    output: str
    template: str | None = None
    filters: tuple = ()
    variables: MappingProxyType = field(
        default_factory=lambda: MappingProxyType({})
    )
    css: tuple = ()
    table_of_contents: bool = False
    toc_depth: int | None = None
    number_sections: bool = False
    chapters: bool = False
    self_contained: bool = False
    standalone: bool = False
    highlight: bool = True
    pdf_engine: str | None = None


@dataclass(frozen=True)
class AssetConfig:
    stylesheet: str = "src/css/main.less"
    include_paths: tuple = ("src/css", "node_modules")
    compiled_css: str = "main.css"
    inlined_css: str = "main.inlined.css"
    script: str = "src/js/main.coffee"
    bundle: str = "main.js"
    lessc: str = "lessc"
    browserify: str = "browserify"
    transforms: tuple = ("coffeeify",)
    extensions: tuple = (".coffee",)
    css_minify_args: tuple = ("--compress",)
    js_minify_args: tuple = ("-g", "uglifyify")


@dataclass(frozen=True)
class WatchRule:
    pattern: str
    task: str


DEFAULT_WATCH_RULES = (
    WatchRule("src/css/*", "compile-styles"),
    WatchRule("src/js/*", "bundle-scripts"),
    WatchRule("src/css/*", "assemble-html"),
    WatchRule("src/js/*", "assemble-html"),
    WatchRule("src/templates/*", "assemble-html"),
    WatchRule("src/pages/*", "assemble-html"),
    WatchRule("pandoc/*", "assemble-html"),
    WatchRule("running.order", "assemble-html"),
)


@dataclass(frozen=True)
class BookConfig:
    """Everything a build needs, resolved once at startup."""

    root: Path
    fragments: tuple
    profiles: MappingProxyType
    name: str = "essential-play"
    output_dir: str = "dist"
    temp_dir: str = "dist/temp"
    metadata: str = "pandoc/metadata.yaml"
    input_format: str = INPUT_FORMAT
    highlight_style: str = "tango"
    assets: AssetConfig = AssetConfig()
    watch_rules: tuple = DEFAULT_WATCH_RULES
    port: int = 4000
    debounce: float = 0.5
    minify: bool = False

    def path(self, relative):
        """Resolve a project-relative path against the project root."""
        return self.root / relative

    @property
    def compiled_css(self):
        return f"{self.temp_dir}/{self.assets.compiled_css}"

    @property
    def inlined_css(self):
        return f"{self.temp_dir}/{self.assets.inlined_css}"

    @property
    def bundle(self):
        return f"{self.temp_dir}/{self.assets.bundle}"

    @property
    def archive(self):
        return f"{self.output_dir}/{self.name}.zip"

    def with_minify(self, minify):
        return dataclasses.replace(self, minify=bool(minify))


def default_profiles(name, output_dir, inlined_css, bundle):
    """Return the built-in profile for each format, keyed by format name."""
    return {
        "html": FormatProfile(
            name="html",
            writer="html5",
            output=f"{output_dir}/{name}.html",
            template="src/templates/template.html",
            filters=("src/filters/pandoc-tables.py",),
            variables=MappingProxyType({"bundle": bundle}),
            css=(inlined_css,),
            table_of_contents=True,
            self_contained=True,
            standalone=True,
        ),
        "pdf": FormatProfile(
            name="pdf",
            writer="latex",
            output=f"{output_dir}/{name}.pdf",
            template="src/templates/template.tex",
            filters=(
                "src/filters/pandoc-callouts.py",
                "src/filters/pandoc-columns.py",
            ),
            variables=MappingProxyType(
                {
                    "papersize": "a4paper",
                    "mainfont": "Garamond",
                    "monofont": "Menlo",
                    "fontsize": "11pt",
                }
            ),
            table_of_contents=True,
            toc_depth=5,
            number_sections=True,
            chapters=True,
            standalone=True,
            pdf_engine="xelatex",
        ),
        "epub": FormatProfile(
            name="epub",
            writer="epub3",
            output=f"{output_dir}/{name}.epub",
            css=(inlined_css,),
            table_of_contents=True,
        ),
        "json": FormatProfile(
            name="json",
            writer="json",
            output=f"{output_dir}/{name}.json",
            highlight=False,
        ),
    }


def read_running_order(path):
    """Return the fragment paths listed in a running-order file."""
    fragments = []
    with open(path, encoding="utf-8") as fp:
        for line in fp:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            fragments.append(line)
    return fragments


_TOP_LEVEL_KEYS = {
    "name",
    "output_dir",
    "temp_dir",
    "metadata",
    "from",
    "highlight_style",
    "fragments",
    "running_order",
    "port",
    "debounce",
    "assets",
    "formats",
    "watch",
}

_TUPLE_FIELDS = {
    "filters",
    "css",
    "include_paths",
    "transforms",
    "extensions",
    "css_minify_args",
    "js_minify_args",
}


def _expect(value, kind, where):
    if not isinstance(value, kind):
        if isinstance(kind, tuple):
            expected = " or ".join(k.__name__ for k in kind)
        else:
            expected = kind.__name__
        raise ConfigError(
            f"{where} must be a {expected}, got {type(value).__name__}"
        )
    return value


def _overrides(cls, data, where):
    """Convert a YAML mapping into keyword overrides for a dataclass."""
    _expect(data, dict, where)
    known = {f.name for f in dataclasses.fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"{where} has unknown keys: {', '.join(unknown)}")
    kwargs = {}
    for key, value in data.items():
        if key in _TUPLE_FIELDS:
            value = tuple(
                str(v) for v in _expect(value, list, f"{where}.{key}")
            )
        elif key == "variables":
            value = MappingProxyType(
                {
                    str(k): str(v)
                    for k, v in _expect(value, dict, f"{where}.{key}").items()
                }
            )
        kwargs[key] = value
    return kwargs


def _load_profiles(data, defaults):
    profiles = dict(defaults)
    if data is None:
        return profiles
    _expect(data, dict, "formats")
    for fmt, overrides in data.items():
        if fmt not in FORMATS:
            raise ConfigError(
                f"formats.{fmt} is not one of {', '.join(FORMATS)}"
            )
        kwargs = _overrides(FormatProfile, overrides or {}, f"formats.{fmt}")
        kwargs.pop("name", None)
        profiles[fmt] = dataclasses.replace(defaults[fmt], **kwargs)
    return profiles


def _load_watch_rules(data):
    rules = []
    for index, item in enumerate(_expect(data, list, "watch")):
        _expect(item, dict, f"watch[{index}]")
        if "pattern" not in item or "task" not in item:
            raise ConfigError(f"watch[{index}] needs both pattern and task")
        rules.append(WatchRule(str(item["pattern"]), str(item["task"])))
    return tuple(rules)


def load_config(root=None, minify=False):
    """Read ``book.yaml`` under ``root`` (default: the working directory)."""
    root = Path(root or Path.cwd()).resolve()
    data = {}
    config_path = root / CONFIG_NAME
    if config_path.exists():
        try:
            data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise ConfigError(f"Could not parse {config_path}: {exc}") from exc
        if data is None:
            data = {}
        _expect(data, dict, CONFIG_NAME)
        unknown = sorted(set(data) - _TOP_LEVEL_KEYS)
        if unknown:
            raise ConfigError(
                f"{CONFIG_NAME} has unknown keys: {', '.join(unknown)}"
            )

    name = str(data.get("name", BookConfig.name))
    output_dir = str(data.get("output_dir", BookConfig.output_dir))
    temp_dir = str(data.get("temp_dir", f"{output_dir}/temp"))

    assets = AssetConfig(**_overrides(AssetConfig, data.get("assets") or {}, "assets"))

    if "fragments" in data:
        fragments = [
            str(f) for f in _expect(data["fragments"], list, "fragments")
        ]
    else:
        order_file = root / str(data.get("running_order", "running.order"))
        if not order_file.exists():
            raise ConfigError(
                f"No fragments listed in {CONFIG_NAME} and no running order"
                f" file at {order_file}"
            )
        fragments = read_running_order(order_file)
    if not fragments:
        raise ConfigError("The fragment list is empty")

    defaults = default_profiles(
        name,
        output_dir,
        f"{temp_dir}/{assets.inlined_css}",
        f"{temp_dir}/{assets.bundle}",
    )
    profiles = _load_profiles(data.get("formats"), defaults)

    if "watch" in data:
        watch_rules = _load_watch_rules(data["watch"])
    else:
        watch_rules = DEFAULT_WATCH_RULES

    return BookConfig(
        root=root,
        fragments=tuple(fragments),
        profiles=MappingProxyType(profiles),
        name=name,
        output_dir=output_dir,
        temp_dir=temp_dir,
        metadata=str(data.get("metadata", BookConfig.metadata)),
        input_format=str(data.get("from", INPUT_FORMAT)),
        highlight_style=str(
            data.get("highlight_style", BookConfig.highlight_style)
        ),
        assets=assets,
        watch_rules=watch_rules,
        port=int(_expect(data.get("port", BookConfig.port), int, "port")),
        debounce=float(
            _expect(
                data.get("debounce", BookConfig.debounce),
                (int, float),
                "debounce",
            )
        ),
        minify=minify,
    )
