"""Parsers turning decoded console output into typed records.

Commands that support ``--output json`` are parsed as JSON arrays. The rest only
print human-readable text, which is matched line by line against fixed
patterns; the Airflow CLI keeps these lines stable in practice but does not
version them.
"""

from __future__ import annotations

import json
import re
from dataclasses import fields, is_dataclass, replace
from typing import Any, Callable, Generic, Sequence, TypeVar

from .decoding import ConsoleResponse
from .errors import DagNotFound, DagRunNotFound, ParseError
from .models import CLEARED_TASK_STATES, DagRun, DagState, DagTask, Task
from .timefmt import parse_no_decimal
from .tristate import Value

R = TypeVar("R")

# Airflow's console prints this instead of `[]` when a listing is empty.
NO_DATA_FOUND = "No data found"


def _stdout(data: ConsoleResponse | str) -> str:
    return data.stdout if isinstance(data, ConsoleResponse) else str(data or "")


def parse_json_value(data: ConsoleResponse | str, *, label: str) -> Any:
    text = _stdout(data).strip()
    if not text:
        raise ParseError(f"empty output from {label}")
    try:
        return json.loads(text)
    except ValueError as e:
        raise ParseError(f"invalid JSON from {label}: {e}") from e


def parse_json_array(
    data: ConsoleResponse | str,
    record: Callable[[dict[str, Any]], R],
    *,
    label: str,
) -> list[R]:
    if _stdout(data).strip() == NO_DATA_FOUND:
        return []
    val = parse_json_value(data, label=label)
    if not isinstance(val, list):
        raise ParseError(f"invalid JSON from {label}: expected array")
    out: list[R] = []
    for i, item in enumerate(val):
        if not isinstance(item, dict):
            raise ParseError(f"invalid JSON from {label}: item {i} is not an object")
        out.append(record(item))
    return out


def _dataclass_field_names(record_type: type) -> tuple[str, ...]:
    if not (isinstance(record_type, type) and is_dataclass(record_type)):
        raise ParseError(f"{record_type!r} is not a dataclass record type")
    return tuple(f.name for f in fields(record_type) if f.init)


def populate_in_order(record_type: type[R], groups: Sequence[Any]) -> R:
    """Build ``record_type`` by assigning ``groups`` to its fields in declaration order."""

    names = _dataclass_field_names(record_type)
    if len(names) != len(groups):
        raise ParseError(
            f"{record_type.__name__} has {len(names)} fields but {len(groups)} groups were captured"
        )
    return record_type(**dict(zip(names, groups)))


class GroupBinding(Generic[R]):
    """Explicit mapping of regex groups onto record fields.

    ``fields`` lists the destination field for group 0 (the whole match), 1,
    2, ... in order. The mapping is checked against the pattern and the record
    type when the binding is created, so a shape mismatch fails at import time.
    """

    def __init__(self, record_type: type[R], pattern: re.Pattern[str], field_names: Sequence[str]) -> None:
        known = set(_dataclass_field_names(record_type))
        names = tuple(field_names)
        if len(names) != pattern.groups + 1:
            raise ParseError(
                f"{record_type.__name__} binding names {len(names)} fields "
                f"but pattern captures {pattern.groups + 1} groups"
            )
        unknown = [n for n in names if n not in known]
        if unknown:
            raise ParseError(f"{record_type.__name__} has no fields {unknown}")
        missing = sorted(known - set(names))
        if missing:
            raise ParseError(f"{record_type.__name__} binding leaves fields unset: {missing}")
        self.record_type = record_type
        self.pattern = pattern
        self.field_names = names

    def bind(self, match: re.Match[str]) -> R:
        groups = (match.group(0),) + match.groups()
        if len(groups) != len(self.field_names):
            raise ParseError(
                f"{self.record_type.__name__} expects {len(self.field_names)} groups, got {len(groups)}"
            )
        return self.record_type(**dict(zip(self.field_names, groups)))

    def find_all(self, text: str) -> list[R]:
        return [self.bind(m) for m in self.pattern.finditer(text)]


_NEW_DAG_RUN_RE = re.compile(
    r"^Created <DagRun ([a-zA-Z0-9\-_.]+) @ "
    r"([0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}:[0-9]{2}[+-][0-9]{2}:[0-9]{2}): "
    r"(.+), externally triggered: (\w+)>\s*$",
    re.MULTILINE,
)


def parse_new_dag_run(data: ConsoleResponse | str) -> DagRun:
    """Parse the confirmation printed by `dags trigger`, ignoring log preamble lines."""

    text = _stdout(data)
    m = _NEW_DAG_RUN_RE.search(text)
    if m is None:
        raise ParseError(f"unable to parse dag run confirmation from stdout:\n{text}")
    dag_id, stamp, run_id, triggered = m.groups()
    if triggered not in {"True", "False"}:
        raise ParseError(f"invalid externally triggered flag: {triggered!r}")
    try:
        execution_date = parse_no_decimal(stamp)
    except ValueError as e:
        raise ParseError(f"invalid execution date {stamp!r}: {e}") from e
    return DagRun(
        dag_id=dag_id,
        dag_run_id=Value(run_id),
        execution_date=Value(execution_date),
        external_trigger=Value(triggered == "True"),
    )


TASK_INSTANCE_PREFIX = "<TaskInstance: "

CLEARED_TASK_BINDING: GroupBinding[Task] = GroupBinding(
    Task,
    re.compile(
        r"<TaskInstance: ([^\s.]+)\.(\S+) (\S+) "
        r"\[(" + "|".join(CLEARED_TASK_STATES) + r")\]>"
    ),
    ("match_string", "dag_id", "task_id", "dag_run_id", "state"),
)


def _resplit_task(task: Task, dag_id: str) -> Task:
    # Dag ids may contain dots, so the requested id decides where the task id starts.
    dotted = f"{task.dag_id}.{task.task_id}"
    prefix = f"{dag_id}."
    if dag_id and dotted.startswith(prefix) and len(dotted) > len(prefix):
        return replace(task, dag_id=dag_id, task_id=dotted[len(prefix):])
    return task


def parse_cleared_tasks(data: ConsoleResponse | str, *, dag_id: str = "") -> list[Task]:
    """Parse the task instances listed by `tasks clear`.

    ``dag_id`` splits ``<dag_id>.<task_id>`` when either part contains dots
    (dotted dag ids, TaskGroup task ids); without it the dag id ends at the
    first dot. Every ``<TaskInstance: ...>`` entry must parse, so a listing is
    never returned partially. A listing with no task instances cannot be told
    apart from output in an unexpected shape, so both raise ParseError.
    """

    text = _stdout(data)
    tasks = [_resplit_task(t, dag_id) for t in CLEARED_TASK_BINDING.find_all(text)]
    if not tasks:
        raise ParseError(f"unable to parse task instances from stdout:\n{text}")
    seen = text.count(TASK_INSTANCE_PREFIX)
    if seen != len(tasks):
        raise ParseError(f"parsed {len(tasks)} of {seen} task instances from stdout:\n{text}")
    return tasks


def parse_dag_state(data: ConsoleResponse | str, *, dag_id: str = "", execution_date: str = "") -> DagState:
    """Parse the two-line output of `dags state`.

    The first line is log preamble; the second starts with the run state, or
    the literal ``None`` when no run exists at that exact execution date.
    """

    text = _stdout(data)
    if dag_id and f"{dag_id} does not exist" in text:
        raise DagNotFound(text, dag_id=dag_id)
    lines = text.split("\n")
    if len(lines) < 2:
        raise ParseError(f"unable to parse dag state from stdout:\n{text}")
    state = lines[1].split(",")[0].strip()
    if state == "None":
        raise DagRunNotFound(
            f"no dag run found with executionDate: {execution_date}",
            dag_id=dag_id,
            execution_date=execution_date,
        )
    return DagState.from_value(state)


def parse_dag_tasks(data: ConsoleResponse | str) -> list[DagTask]:
    """Parse `tasks list --tree` lines like ``<Task(BashOperator): run_this>``."""

    out: list[DagTask] = []
    for line in _stdout(data).split("\n"):
        stripped = line.strip()
        if not stripped:
            continue
        bare = stripped.replace("<", "").replace(">", "")
        operator, sep, task_id = bare.partition(": ")
        if not sep or not task_id.strip():
            raise ParseError(f"unable to parse task line: {line!r}")
        if operator.startswith("Task(") and operator.endswith(")"):
            operator = operator[len("Task("):-1]
        operator = operator.replace("(", "").replace(")", "").strip()
        out.append(DagTask(task_id=task_id.strip(), operator=Value(operator)))
    return out
