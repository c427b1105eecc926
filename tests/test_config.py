import dataclasses

import pytest

from pybookbuild.config import (
    DEFAULT_WATCH_RULES,
    FORMATS,
    INPUT_FORMAT,
    WatchRule,
    load_config,
    read_running_order,
)
from pybookbuild.errors import ConfigError
from conftest import FRAGMENTS


def test_defaults_follow_running_order(config, project):
    assert config.root == project.resolve()
    assert config.fragments == tuple(FRAGMENTS)
    assert config.metadata == "pandoc/metadata.yaml"
    assert config.input_format == INPUT_FORMAT
    assert "+smart" in config.input_format
    assert set(config.profiles) == set(FORMATS)
    assert config.profiles["html"].output == "dist/essential-play.html"
    assert config.profiles["pdf"].pdf_engine == "xelatex"
    assert config.profiles["pdf"].variables["papersize"] == "a4paper"
    assert config.profiles["json"].template is None
    assert config.watch_rules == DEFAULT_WATCH_RULES
    assert config.minify is False


def test_running_order_skips_comments_and_blanks(tmp_path):
    order = tmp_path / "running.order"
    order.write_text("# front matter\n\nintro.md\n  basics.md  \n# appendix.md\n")
    assert read_running_order(order) == ["intro.md", "basics.md"]


def test_config_is_immutable(config):
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.minify = True
    with pytest.raises(TypeError):
        config.profiles["html"] = None


def test_with_minify_returns_copy(config):
    minified = config.with_minify(True)
    assert minified.minify is True
    assert config.minify is False
    assert minified.fragments == config.fragments


def test_book_yaml_overrides(project):
    (project / "book.yaml").write_text(
        "name: handbook\n"
        "output_dir: out\n"
        "fragments:\n"
        "  - intro.md\n"
        "  - appendix.md\n"
        "formats:\n"
        "  pdf:\n"
        "    filters: [filters/columns.lua]\n"
        "    variables:\n"
        "      papersize: letter\n"
        "watch:\n"
        "  - pattern: 'chapters/*.md'\n"
        "    task: produce-pdf\n"
    )
    config = load_config(project)
    assert config.fragments == ("intro.md", "appendix.md")
    assert config.temp_dir == "out/temp"
    assert config.inlined_css == "out/temp/main.inlined.css"
    assert config.profiles["html"].output == "out/handbook.html"
    assert config.profiles["html"].css == ("out/temp/main.inlined.css",)
    pdf = config.profiles["pdf"]
    assert pdf.filters == ("filters/columns.lua",)
    assert dict(pdf.variables) == {"papersize": "letter"}
    # untouched fields keep their defaults
    assert pdf.number_sections is True
    assert config.watch_rules == (WatchRule("chapters/*.md", "produce-pdf"),)


def test_missing_running_order_is_config_error(tmp_path):
    with pytest.raises(ConfigError, match="running order"):
        load_config(tmp_path)


def test_empty_fragment_list_is_config_error(tmp_path):
    (tmp_path / "running.order").write_text("# nothing yet\n")
    with pytest.raises(ConfigError, match="empty"):
        load_config(tmp_path)


@pytest.mark.parametrize(
    "text, message",
    [
        ("- just\n- a list\n", "must be a dict"),
        ("colour: blue\n", "unknown keys: colour"),
        ("formats:\n  xml: {}\n", "formats.xml"),
        ("formats:\n  html:\n    engine: foo\n", "unknown keys: engine"),
        ("port: eighty\n", "port must be a int"),
        ("watch:\n  - pattern: '*.md'\n", "needs both pattern and task"),
        ("name: [unclosed\n", "Could not parse"),
    ],
)
def test_invalid_book_yaml(project, text, message):
    (project / "book.yaml").write_text(text)
    with pytest.raises(ConfigError, match=message):
        load_config(project)
