from __future__ import annotations

import json
import re

from pydantic import ValidationError

from .models import Task, TaskChain

_WHITESPACE = re.compile(r"\s+")


class ChainParseError(ValueError):
    pass


def reference_name_for(name: str) -> str:
    return _WHITESPACE.sub("_", name.strip().lower())


def add_task(
    chain: TaskChain,
    name: str,
    reference_name: str | None = None,
    type: str = "SIMPLE",
) -> TaskChain:
    name = name.strip()
    if not name:
        return chain
    reference = (reference_name or "").strip() or reference_name_for(name)
    task = Task(name=name, task_reference_name=reference, type=type)
    return chain.model_copy(update={"tasks": [*chain.tasks, task]})


def remove_task(chain: TaskChain, index: int) -> TaskChain:
    if not 0 <= index < len(chain.tasks):
        return chain
    tasks = [task for i, task in enumerate(chain.tasks) if i != index]
    return chain.model_copy(update={"tasks": tasks})


def _swap(chain: TaskChain, first: int, second: int) -> TaskChain:
    if not (0 <= first < len(chain.tasks) and 0 <= second < len(chain.tasks)):
        return chain
    tasks = list(chain.tasks)
    tasks[first], tasks[second] = tasks[second], tasks[first]
    return chain.model_copy(update={"tasks": tasks})


def move_task_up(chain: TaskChain, index: int) -> TaskChain:
    return _swap(chain, index - 1, index)


def move_task_down(chain: TaskChain, index: int) -> TaskChain:
    return _swap(chain, index, index + 1)


def rename(chain: TaskChain, name: str) -> TaskChain:
    return chain.model_copy(update={"name": name})


def describe(chain: TaskChain, description: str) -> TaskChain:
    return chain.model_copy(update={"description": description})


def parse_chain(text: str | bytes) -> TaskChain:
    """Parse a JSON task chain such as ``{"name": ..., "tasks": [...]}``."""
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ChainParseError(f"Invalid JSON: {exc.msg}") from exc
    except UnicodeDecodeError as exc:
        raise ChainParseError(f"Invalid JSON: {exc.reason}") from exc
    if not isinstance(payload, dict):
        raise ChainParseError("Invalid JSON: expected an object")
    try:
        return TaskChain.model_validate(payload)
    except ValidationError as exc:
        raise ChainParseError(f"Invalid task chain: {exc.errors()[0]['msg']}") from exc
