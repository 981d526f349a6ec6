from __future__ import annotations

import json
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any

from ..client import MwaaClient
from ..command import Command
from ..errors import DagNotFound, DagRunNotFound, RemoteExecutionError, UsageError
from ..models import Dag, DagJob, DagReportEntry, DagRun, DagState
from ..parsers import parse_dag_state, parse_json_array, parse_new_dag_run
from ..timefmt import format_no_decimal
from ..tristate import UNSET, TriState, Value, get, has_value, is_set


@dataclass(frozen=True)
class DagRunRequest:
    dag_id: str
    conf: TriState[dict[str, Any]] = UNSET
    execution_date: TriState[datetime] = UNSET
    logical_date: TriState[datetime] = UNSET
    run_id: TriState[str] = UNSET


@dataclass(frozen=True)
class DagRunFilter:
    dag_id: TriState[str] = UNSET
    state: TriState[str] = UNSET
    start_date: TriState[date] = UNSET
    end_date: TriState[date] = UNSET
    run_id: TriState[str] = UNSET


@dataclass(frozen=True)
class DagJobsQuery:
    dag_id: TriState[str] = UNSET
    state: TriState[str] = UNSET
    limit: TriState[int] = UNSET


def _date_arg(val: date) -> str:
    if isinstance(val, datetime):
        return format_no_decimal(val)
    return val.isoformat()


def _dag_state_arg(raw: Any) -> str:
    val = raw.value if isinstance(raw, DagState) else str(raw or "").strip()
    try:
        return DagState(val).value
    except ValueError as e:
        raise UsageError(f"{val!r} is not a valid DagState") from e


def _conf_arg(conf: Any) -> str:
    try:
        return json.dumps(conf, separators=(",", ":"), sort_keys=True)
    except (TypeError, ValueError) as e:
        raise UsageError(f"dag run conf is not JSON serializable: {e}") from e


def _raise_if_dag_missing(err: RemoteExecutionError, dag_id: str, *phrases: str) -> None:
    for phrase in phrases:
        if phrase in err.stderr:
            raise DagNotFound(err.stderr, dag_id=dag_id) from err


def find_dag_run(runs: list[DagRun], run_id: str) -> DagRun | None:
    for run in runs:
        if get(run.dag_run_id) == run_id:
            return run
    return None


def list_dags(client: MwaaClient) -> list[Dag]:
    cmd = Command.of("dags", "list").option("--output", "json")
    return parse_json_array(client.send(cmd), Dag.from_json, label="dags list")


def list_dag_runs(client: MwaaClient, flt: DagRunFilter | None = None) -> list[DagRun]:
    flt = flt or DagRunFilter()
    cmd = Command.of("dags", "list-runs")
    cmd.option_if("--dag-id", flt.dag_id)
    cmd.option_if("--state", flt.state, _dag_state_arg)
    cmd.option_if("--start-date", flt.start_date, _date_arg)
    cmd.option_if("--end-date", flt.end_date, _date_arg)
    cmd.option("--output", "json")
    runs = parse_json_array(client.send(cmd), DagRun.from_json, label="dags list-runs")
    if has_value(flt.run_id):
        run_id = str(get(flt.run_id))
        found = find_dag_run(runs, run_id)
        if found is None:
            raise DagRunNotFound(f"found no dag run with runId: {run_id}", dag_id=str(get(flt.dag_id, "")), run_id=run_id)
        return [found]
    return runs


def trigger_dag_run(client: MwaaClient, req: DagRunRequest) -> DagRun:
    dag_id = (req.dag_id or "").strip()
    if not dag_id:
        raise UsageError("DagRunRequest.dag_id is empty, please provide a dag id")
    cmd = Command.of("dags", "trigger")
    cmd.option_if("--conf", req.conf, _conf_arg)
    exec_date = req.execution_date if has_value(req.execution_date) else req.logical_date
    cmd.option_if("--exec-date", exec_date, format_no_decimal)
    cmd.option_if("--run-id", req.run_id)
    cmd.arg(dag_id)
    run = parse_new_dag_run(client.send(cmd))
    if is_set(req.conf):
        run = replace(run, conf=req.conf)
    return run


def get_dag_state(client: MwaaClient, dag_id: str, execution_date: datetime) -> DagState:
    # The console matches the execution date exactly, so it must be sent without fractions.
    stamp = format_no_decimal(execution_date)
    cmd = Command.of("dags", "state").arg(dag_id).arg(stamp)
    try:
        data = client.send(cmd)
    except RemoteExecutionError as e:
        _raise_if_dag_missing(e, dag_id, f"Dag '{dag_id}' could not be found")
        raise
    return parse_dag_state(data, dag_id=dag_id, execution_date=stamp)


def list_dag_jobs(client: MwaaClient, query: DagJobsQuery | None = None) -> list[DagJob]:
    """List the latest jobs, optionally filtered by dag id and state.

    A limit of zero or less returns an empty list without calling the console.
    """

    query = query or DagJobsQuery()
    cmd = Command.of("dags", "list-jobs")
    cmd.option_if("--dag-id", query.dag_id)
    cmd.option_if("--state", query.state, _dag_state_arg)
    if has_value(query.limit):
        try:
            limit = int(get(query.limit))
        except (TypeError, ValueError) as e:
            raise UsageError(f"invalid limit: {get(query.limit)!r}") from e
        if limit <= 0:
            return []
        cmd.option("--limit", limit)
    cmd.option("--output", "json")
    try:
        data = client.send(cmd)
    except RemoteExecutionError as e:
        if isinstance(query.dag_id, Value):
            dag_id = str(query.dag_id.value)
            _raise_if_dag_missing(e, dag_id, f"Dag id {dag_id} not found")
        raise
    return parse_json_array(data, DagJob.from_json, label="dags list-jobs")


def pause_dag(client: MwaaClient, dag_id: str) -> None:
    client.send(Command.of("dags", "pause").arg(dag_id))


def unpause_dag(client: MwaaClient, dag_id: str) -> None:
    client.send(Command.of("dags", "unpause").arg(dag_id))


def delete_dag(client: MwaaClient, dag_id: str) -> None:
    """Permanently delete every database record related to ``dag_id``."""

    client.send(Command.of("dags", "delete").switch("--yes").arg(dag_id))


def dags_report(client: MwaaClient) -> list[DagReportEntry]:
    cmd = Command.of("dags", "report").option("--output", "json")
    return parse_json_array(client.send(cmd), DagReportEntry.from_json, label="dags report")


def show_dag(client: MwaaClient, dag_id: str) -> str:
    """Return the DOT source of the dag graph."""

    return client.send(Command.of("dags", "show").arg(dag_id)).stdout
