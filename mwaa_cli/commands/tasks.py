from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..client import MwaaClient
from ..command import Command
from ..errors import ParseError, RemoteExecutionError, UsageError
from ..models import DagTask, Task, TaskState
from ..parsers import parse_cleared_tasks, parse_dag_tasks, parse_json_array
from ..timefmt import format_no_decimal, parse_day
from ..tristate import UNSET, TriState, get, has_value, is_set
from .dags import _raise_if_dag_missing


@dataclass(frozen=True)
class ClearTasksRequest:
    """Constraints for `tasks clear`; ``dag_regex`` treats ``dag_id`` as a regex."""

    dag_id: str
    task_regex: TriState[str] = UNSET
    dag_regex: TriState[bool] = UNSET
    downstream: TriState[bool] = UNSET
    upstream: TriState[bool] = UNSET
    start_date: TriState[str] = UNSET
    end_date: TriState[str] = UNSET
    only_failed: TriState[bool] = UNSET
    only_running: TriState[bool] = UNSET
    exclude_subdags: TriState[bool] = UNSET
    exclude_parentdag: TriState[bool] = UNSET
    task_ids: TriState[list[str]] = UNSET


def _day_arg(raw: str) -> str:
    try:
        return parse_day(raw).isoformat()
    except ValueError as e:
        raise UsageError(f"invalid date {raw!r}: expected YYYY-MM-DD") from e


def _clear_command(req: ClearTasksRequest, *, dry_run: bool) -> Command:
    if is_set(req.task_ids):
        raise UsageError("cannot use task ids as constraints for clearing tasks with the CLI")
    dag_id = (req.dag_id or "").strip()
    if not dag_id:
        raise UsageError("ClearTasksRequest.dag_id is empty, please provide a dag id")
    cmd = Command.of("tasks", "clear")
    cmd.switch("--dag-regex", bool(get(req.dag_regex, False)))
    cmd.switch("--downstream", bool(get(req.downstream, False)))
    cmd.option_if("--end-date", req.end_date, _day_arg)
    cmd.switch("--exclude-parentdag", bool(get(req.exclude_parentdag, False)))
    cmd.switch("--exclude-subdags", bool(get(req.exclude_subdags, False)))
    cmd.switch("--only-failed", bool(get(req.only_failed, False)))
    cmd.switch("--only-running", bool(get(req.only_running, False)))
    cmd.option_if("--start-date", req.start_date, _day_arg)
    cmd.option_if("--task-regex", req.task_regex)
    cmd.switch("--upstream", bool(get(req.upstream, False)))
    # Without --yes the console prints the affected task instances and stops at the prompt.
    cmd.switch("--yes", not dry_run)
    cmd.arg(dag_id)
    return cmd


def list_tasks_to_clear(client: MwaaClient, req: ClearTasksRequest) -> list[Task]:
    cmd = _clear_command(req, dry_run=True)
    # A regex dag id cannot locate the dag/task boundary in dotted ids.
    dag_id = "" if get(req.dag_regex, False) else req.dag_id.strip()
    return parse_cleared_tasks(client.send(cmd), dag_id=dag_id)


def clear_tasks(client: MwaaClient, req: ClearTasksRequest) -> None:
    client.send(_clear_command(req, dry_run=False))


def _run_ref(execution_date: TriState[datetime], run_id: TriState[str]) -> str:
    if has_value(execution_date) and has_value(run_id):
        raise UsageError("execution_date and run_id are mutually exclusive")
    if has_value(execution_date):
        return format_no_decimal(get(execution_date))
    if has_value(run_id):
        return str(get(run_id))
    raise UsageError("execution_date or run_id required")


def list_dag_tasks(client: MwaaClient, dag_id: str) -> list[DagTask]:
    cmd = Command.of("tasks", "list").switch("--tree").arg(dag_id)
    try:
        data = client.send(cmd)
    except RemoteExecutionError as e:
        _raise_if_dag_missing(e, dag_id, f"Dag '{dag_id}' could not be found")
        raise
    return parse_dag_tasks(data)


def get_task_state(
    client: MwaaClient,
    dag_id: str,
    task_id: str,
    *,
    execution_date: TriState[datetime] = UNSET,
    run_id: TriState[str] = UNSET,
) -> str:
    ref = _run_ref(execution_date, run_id)
    data = client.send(Command.of("tasks", "state").arg(dag_id).arg(task_id).arg(ref))
    lines = [line.strip() for line in data.stdout.split("\n") if line.strip()]
    if not lines:
        raise ParseError(f"empty output from tasks state for {dag_id}.{task_id}")
    return lines[-1]


def get_task_failed_deps(
    client: MwaaClient,
    dag_id: str,
    task_id: str,
    *,
    execution_date: TriState[datetime] = UNSET,
    run_id: TriState[str] = UNSET,
) -> str:
    """Return the console's description of unmet dependencies for a task instance."""

    ref = _run_ref(execution_date, run_id)
    return client.send(Command.of("tasks", "failed-deps").arg(dag_id).arg(task_id).arg(ref)).stdout


def get_task_states_for_dag_run(
    client: MwaaClient,
    dag_id: str,
    *,
    execution_date: TriState[datetime] = UNSET,
    run_id: TriState[str] = UNSET,
) -> list[TaskState]:
    ref = _run_ref(execution_date, run_id)
    cmd = Command.of("tasks", "states-for-dag-run").option("--output", "json").arg(dag_id).arg(ref)
    return parse_json_array(client.send(cmd), TaskState.from_json, label="tasks states-for-dag-run")
