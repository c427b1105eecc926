import pytest

from pybookbuild.command_registry import (
    CommandRegistrationError,
    Step,
    TaskRegistry,
    run_task,
)
from pybookbuild.errors import CompileError, ConfigError


def _recording_steps(calls, names, failing=()):
    steps = []
    for name in names:
        def action(name=name):
            calls.append(name)
            if name in failing:
                raise CompileError(f"{name} broke")
        steps.append(Step(name, action))
    return steps


def test_steps_run_in_order():
    calls = []
    registry = TaskRegistry()
    registry.register("build", "build", *_recording_steps(calls, "abc"))
    assert registry.run("build") is True
    assert calls == ["a", "b", "c"]


@pytest.mark.parametrize("failing", ["a", "b", "c"])
def test_failure_short_circuits(failing):
    calls = []
    registry = TaskRegistry()
    task = registry.register(
        "build", "build", *_recording_steps(calls, "abc", failing=failing)
    )
    assert run_task(task) is False
    assert calls == list("abc"[: "abc".index(failing) + 1])


def test_unexpected_exceptions_propagate():
    def boom():
        raise RuntimeError("bug")

    registry = TaskRegistry()
    registry.register("build", "build", Step("boom", boom))
    with pytest.raises(RuntimeError):
        registry.run("build")


def test_tasks_compose_by_splicing_steps():
    calls = []
    registry = TaskRegistry()
    first = registry.register("first", "one", *_recording_steps(calls, "ab"))
    second = registry.register("second", "two", *_recording_steps(calls, "c"))
    both = registry.register("both", "both", first, second, *_recording_steps(calls, "d"))
    assert [s.name for s in both.steps] == ["a", "b", "c", "d"]
    assert registry.run("both")
    assert calls == ["a", "b", "c", "d"]


def test_failure_inside_composed_task_stops_later_tasks():
    calls = []
    registry = TaskRegistry()
    html = registry.register("html", "", *_recording_steps(calls, ["html"], failing=["html"]))
    pdf = registry.register("pdf", "", *_recording_steps(calls, ["pdf"]))
    registry.register("all", "", html, pdf)
    assert registry.run("all") is False
    assert calls == ["html"]
    assert registry.run("pdf") is True


def test_duplicate_registration_raises():
    registry = TaskRegistry()
    registry.register("build", "build")
    with pytest.raises(CommandRegistrationError):
        registry.register("build", "again")
    with pytest.raises(CommandRegistrationError):
        registry.alias("build", "build")


def test_alias_and_unknown_names():
    registry = TaskRegistry()
    task = registry.register("package", "zip it")
    registry.alias("default", "package")
    assert registry.get("default") is task
    assert "default" in registry
    assert registry.names() == ["package", "default"]
    assert registry.describe("default") == "alias for package"
    with pytest.raises(ConfigError, match="Unknown command 'nope'"):
        registry.get("nope")
    with pytest.raises(ConfigError):
        registry.alias("other", "nope")
