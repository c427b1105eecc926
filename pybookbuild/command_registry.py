import logging
from dataclasses import dataclass

from .errors import BuildError, ConfigError

logger = logging.getLogger(__name__)


class CommandRegistrationError(Exception):
    """Exception raised when attempting to register a duplicate command."""


@dataclass(frozen=True)
class Step:
    name: str
    action: object

    def __call__(self):
        return self.action()


@dataclass(frozen=True)
class Task:
    """A named, ordered sequence of steps with no branching."""

    name: str
    help: str
    steps: tuple


def run_task(task):
    """Run the steps of ``task`` in order, stopping at the first failure.

    Returns True when every step completed.
    """
    for step in task.steps:
        logger.info("[%s] %s", task.name, step.name)
        try:
            step()
        except BuildError as exc:
            logger.error("[%s] %s failed: %s", task.name, step.name, exc)
            return False
    return True


class TaskRegistry:
    """Table of named commands, each resolving to one Task."""

    def __init__(self):
        self._tasks = {}
        self._aliases = {}

    def register(self, name, help_text, *parts):
        """Register ``name`` as the concatenation of ``parts``.

        Each part is a Step or an already registered Task, whose steps are
        spliced in place.
        """
        if name in self._tasks or name in self._aliases:
            raise CommandRegistrationError(
                f"Command '{name}' already registered"
            )
        steps = []
        for part in parts:
            if isinstance(part, Task):
                steps.extend(part.steps)
            else:
                steps.append(part)
        task = Task(name=name, help=help_text.strip(), steps=tuple(steps))
        self._tasks[name] = task
        return task

    def alias(self, name, target):
        if name in self._tasks or name in self._aliases:
            raise CommandRegistrationError(
                f"Command '{name}' already registered"
            )
        self.get(target)
        self._aliases[name] = target

    def get(self, name):
        name = self._aliases.get(name, name)
        try:
            return self._tasks[name]
        except KeyError:
            raise ConfigError(f"Unknown command '{name}'") from None

    def __contains__(self, name):
        return name in self._tasks or name in self._aliases

    def names(self):
        return list(self._tasks) + list(self._aliases)

    def describe(self, name):
        if name in self._aliases:
            return f"alias for {self._aliases[name]}"
        return self._tasks[name].help

    def run(self, name):
        return run_task(self.get(name))
