from __future__ import annotations

import json
import sys
from datetime import datetime
from typing import Any

import click
import typer
from rich.console import Console
from rich.markup import escape

from . import __version__
from . import commands
from .cli_shared import (
    MWAA_ENVIRONMENT_NAME,
    GlobalOpts,
    _bootstrap_env,
    _client,
    _configure_logging,
    _print_json,
    _resolve_global_opts,
)
from .client import MwaaClient
from .errors import MwaaError, UsageError
from .models import Connection
from .timefmt import parse_no_decimal
from .tristate import UNSET, TriState, Value

app = typer.Typer(
    name="mwaa-cli",
    help="Run Airflow CLI commands against an Amazon MWAA environment.",
    no_args_is_help=True,
    add_completion=False,
)
dags_app = typer.Typer(help="DAG and DAG run commands.", no_args_is_help=True)
tasks_app = typer.Typer(help="Task and task instance commands.", no_args_is_help=True)
variables_app = typer.Typer(help="Airflow variables.", no_args_is_help=True)
connections_app = typer.Typer(help="Airflow connections.", no_args_is_help=True)
roles_app = typer.Typer(help="Airflow roles.", no_args_is_help=True)
providers_app = typer.Typer(help="Installed provider packages.", no_args_is_help=True)
app.add_typer(dags_app, name="dags")
app.add_typer(tasks_app, name="tasks")
app.add_typer(variables_app, name="variables")
app.add_typer(connections_app, name="connections")
app.add_typer(roles_app, name="roles")
app.add_typer(providers_app, name="providers")

_ERROR_CONSOLE = Console(stderr=True)


def _rich_error(msg: str) -> None:
    _ERROR_CONSOLE.print(f"[bold red]error:[/bold red] {escape(msg)}", highlight=False, soft_wrap=True)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"mwaa-cli {__version__}")
        raise typer.Exit(code=0)


def _ctx_global(ctx: typer.Context) -> GlobalOpts:
    root = ctx.find_root()
    if isinstance(root.obj, dict) and isinstance(root.obj.get("g"), GlobalOpts):
        return root.obj["g"]
    raise UsageError("global options were not initialized")


def _ctx_client(ctx: typer.Context) -> MwaaClient:
    root = ctx.find_root()
    client = root.obj.get("client") if isinstance(root.obj, dict) else None
    if client is None:
        client = _client(_ctx_global(ctx))
        root.obj["client"] = client
    return client


def _opt(val: Any) -> TriState[Any]:
    return UNSET if val is None else Value(val)


def _timestamp_opt(raw: str | None, *, label: str) -> TriState[datetime]:
    if raw is None:
        return UNSET
    try:
        return Value(parse_no_decimal(raw))
    except ValueError as e:
        raise UsageError(f"invalid {label} {raw!r}: expected YYYY-MM-DDTHH:MM:SS+HH:MM") from e


def _load_json_object(*, raw: str, label: str) -> dict[str, Any]:
    try:
        val = json.loads(raw)
    except ValueError as e:
        raise UsageError(f"invalid {label}: {e}") from e
    if not isinstance(val, dict):
        raise UsageError(f"invalid {label}: expected JSON object")
    return val


def _emit_records(ctx: typer.Context, records: list[Any]) -> None:
    _print_json([r.to_json() for r in records], pretty=_ctx_global(ctx).pretty)


def _emit(ctx: typer.Context, obj: Any) -> None:
    _print_json(obj, pretty=_ctx_global(ctx).pretty)


@app.callback()
def app_callback(
    ctx: typer.Context,
    environment: str | None = typer.Option(
        None,
        "--env",
        help=f"MWAA environment name (env override: {MWAA_ENVIRONMENT_NAME})",
    ),
    profile: str | None = typer.Option(None, "--profile", help="AWS profile (env: AWS_PROFILE)"),
    region: str | None = typer.Option(None, "--region", help="AWS region (env: AWS_REGION)"),
    plain_json: bool = typer.Option(False, "--plain-json", help="Emit compact JSON output"),
    quiet: bool = typer.Option(False, "--quiet", help="Only log errors to stderr"),
    verbose: bool = typer.Option(False, "--verbose", help="Log token refreshes and dispatched commands"),
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True),
) -> None:
    del version
    g = _resolve_global_opts(
        environment=environment,
        profile=profile,
        region=region,
        plain_json=plain_json,
        quiet=quiet,
        verbose=verbose,
    )
    _configure_logging(g)
    ctx.obj = {"g": g}


@app.command("run", help="Send a raw Airflow CLI command line and print both streams.")
def run(ctx: typer.Context, command: str = typer.Argument(..., help="e.g. \"dags list --output json\"")) -> None:
    resp = _ctx_client(ctx).send_raw(command)
    err = resp.remote_error()
    _emit(ctx, {"stdout": resp.stdout, "stderr": resp.stderr, "remoteError": err is not None})
    if err is not None:
        raise typer.Exit(code=1)


@app.command("version", help="Print the Airflow version of the environment.")
def version_cmd(ctx: typer.Context) -> None:
    _emit(ctx, {"version": commands.get_version(_ctx_client(ctx))})


@dags_app.command("list", help="List DAGs.")
def dags_list(ctx: typer.Context) -> None:
    _emit_records(ctx, commands.list_dags(_ctx_client(ctx)))


@dags_app.command("list-runs", help="List DAG runs, optionally filtered.")
def dags_list_runs(
    ctx: typer.Context,
    dag_id: str | None = typer.Option(None, "--dag-id", help="DAG id"),
    state: str | None = typer.Option(None, "--state", help="queued, running, success or failed"),
    start_date: str | None = typer.Option(None, "--start-date", help="YYYY-MM-DDTHH:MM:SS+HH:MM"),
    end_date: str | None = typer.Option(None, "--end-date", help="YYYY-MM-DDTHH:MM:SS+HH:MM"),
    run_id: str | None = typer.Option(None, "--run-id", help="Only return the run with this id"),
) -> None:
    flt = commands.DagRunFilter(
        dag_id=_opt(dag_id),
        state=_opt(state),
        start_date=_timestamp_opt(start_date, label="--start-date"),
        end_date=_timestamp_opt(end_date, label="--end-date"),
        run_id=_opt(run_id),
    )
    _emit_records(ctx, commands.list_dag_runs(_ctx_client(ctx), flt))


@dags_app.command("trigger", help="Trigger a new DAG run and print it.")
def dags_trigger(
    ctx: typer.Context,
    dag_id: str = typer.Argument(..., help="DAG id"),
    conf: str | None = typer.Option(None, "--conf", help="JSON object passed to the run"),
    exec_date: str | None = typer.Option(None, "--exec-date", help="YYYY-MM-DDTHH:MM:SS+HH:MM"),
    run_id: str | None = typer.Option(None, "--run-id", help="Run id"),
) -> None:
    req = commands.DagRunRequest(
        dag_id=dag_id,
        conf=UNSET if conf is None else Value(_load_json_object(raw=conf, label="--conf")),
        execution_date=_timestamp_opt(exec_date, label="--exec-date"),
        run_id=_opt(run_id),
    )
    _emit(ctx, commands.trigger_dag_run(_ctx_client(ctx), req).to_json())


@dags_app.command("state", help="Print the state of the run at an exact execution date.")
def dags_state(
    ctx: typer.Context,
    dag_id: str = typer.Argument(..., help="DAG id"),
    execution_date: str = typer.Argument(..., help="YYYY-MM-DDTHH:MM:SS+HH:MM"),
) -> None:
    try:
        when = parse_no_decimal(execution_date)
    except ValueError as e:
        raise UsageError(f"invalid execution date {execution_date!r}") from e
    state = commands.get_dag_state(_ctx_client(ctx), dag_id, when)
    _emit(ctx, {"dagId": dag_id, "state": state.value})


@dags_app.command("list-jobs", help="List the latest jobs.")
def dags_list_jobs(
    ctx: typer.Context,
    dag_id: str | None = typer.Option(None, "--dag-id", help="DAG id"),
    state: str | None = typer.Option(None, "--state", help="queued, running, success or failed"),
    limit: int | None = typer.Option(None, "--limit", help="Maximum number of jobs"),
) -> None:
    query = commands.DagJobsQuery(dag_id=_opt(dag_id), state=_opt(state), limit=_opt(limit))
    _emit_records(ctx, commands.list_dag_jobs(_ctx_client(ctx), query))


@dags_app.command("pause", help="Pause a DAG.")
def dags_pause(ctx: typer.Context, dag_id: str = typer.Argument(..., help="DAG id")) -> None:
    commands.pause_dag(_ctx_client(ctx), dag_id)
    _emit(ctx, {"dagId": dag_id, "paused": True})


@dags_app.command("unpause", help="Unpause a DAG.")
def dags_unpause(ctx: typer.Context, dag_id: str = typer.Argument(..., help="DAG id")) -> None:
    commands.unpause_dag(_ctx_client(ctx), dag_id)
    _emit(ctx, {"dagId": dag_id, "paused": False})


@dags_app.command("delete", help="Permanently delete all records of a DAG.")
def dags_delete(
    ctx: typer.Context,
    dag_id: str = typer.Argument(..., help="DAG id"),
    yes: bool = typer.Option(False, "--yes", help="Confirm deletion"),
) -> None:
    if not yes:
        raise UsageError("refusing to delete without --yes")
    commands.delete_dag(_ctx_client(ctx), dag_id)
    _emit(ctx, {"dagId": dag_id, "deleted": True})


@dags_app.command("report", help="Print DagBag loading statistics.")
def dags_report(ctx: typer.Context) -> None:
    _emit_records(ctx, commands.dags_report(_ctx_client(ctx)))


@dags_app.command("show", help="Print the DOT graph of a DAG.")
def dags_show(ctx: typer.Context, dag_id: str = typer.Argument(..., help="DAG id")) -> None:
    sys.stdout.write(commands.show_dag(_ctx_client(ctx), dag_id) + "\n")


@tasks_app.command("list", help="List the tasks of a DAG.")
def tasks_list(ctx: typer.Context, dag_id: str = typer.Argument(..., help="DAG id")) -> None:
    _emit_records(ctx, commands.list_dag_tasks(_ctx_client(ctx), dag_id))


@tasks_app.command("clear", help="List (default) or clear matching task instances.")
def tasks_clear(
    ctx: typer.Context,
    dag_id: str = typer.Argument(..., help="DAG id"),
    task_regex: str | None = typer.Option(None, "--task-regex", help="Task id regex"),
    dag_regex: bool = typer.Option(False, "--dag-regex", help="Treat DAG id as a regex"),
    downstream: bool = typer.Option(False, "--downstream", help="Include downstream tasks"),
    upstream: bool = typer.Option(False, "--upstream", help="Include upstream tasks"),
    only_failed: bool = typer.Option(False, "--only-failed", help="Only failed task instances"),
    only_running: bool = typer.Option(False, "--only-running", help="Only running task instances"),
    start_date: str | None = typer.Option(None, "--start-date", help="YYYY-MM-DD"),
    end_date: str | None = typer.Option(None, "--end-date", help="YYYY-MM-DD"),
    yes: bool = typer.Option(False, "--yes", help="Clear instead of listing"),
) -> None:
    req = commands.ClearTasksRequest(
        dag_id=dag_id,
        task_regex=_opt(task_regex),
        dag_regex=Value(dag_regex),
        downstream=Value(downstream),
        upstream=Value(upstream),
        only_failed=Value(only_failed),
        only_running=Value(only_running),
        start_date=_opt(start_date),
        end_date=_opt(end_date),
    )
    client = _ctx_client(ctx)
    if yes:
        commands.clear_tasks(client, req)
        _emit(ctx, {"dagId": dag_id, "cleared": True})
        return
    _emit_records(ctx, commands.list_tasks_to_clear(client, req))


def _run_ref_opts(exec_date: str | None, run_id: str | None) -> dict[str, Any]:
    return {
        "execution_date": _timestamp_opt(exec_date, label="--exec-date"),
        "run_id": _opt(run_id),
    }


@tasks_app.command("state", help="Print the state of a task instance.")
def tasks_state(
    ctx: typer.Context,
    dag_id: str = typer.Argument(..., help="DAG id"),
    task_id: str = typer.Argument(..., help="Task id"),
    exec_date: str | None = typer.Option(None, "--exec-date", help="YYYY-MM-DDTHH:MM:SS+HH:MM"),
    run_id: str | None = typer.Option(None, "--run-id", help="Run id"),
) -> None:
    state = commands.get_task_state(_ctx_client(ctx), dag_id, task_id, **_run_ref_opts(exec_date, run_id))
    _emit(ctx, {"dagId": dag_id, "taskId": task_id, "state": state})


@tasks_app.command("failed-deps", help="Print unmet dependencies of a task instance.")
def tasks_failed_deps(
    ctx: typer.Context,
    dag_id: str = typer.Argument(..., help="DAG id"),
    task_id: str = typer.Argument(..., help="Task id"),
    exec_date: str | None = typer.Option(None, "--exec-date", help="YYYY-MM-DDTHH:MM:SS+HH:MM"),
    run_id: str | None = typer.Option(None, "--run-id", help="Run id"),
) -> None:
    text = commands.get_task_failed_deps(_ctx_client(ctx), dag_id, task_id, **_run_ref_opts(exec_date, run_id))
    sys.stdout.write(text + "\n")


@tasks_app.command("states", help="Print the state of every task instance in a DAG run.")
def tasks_states(
    ctx: typer.Context,
    dag_id: str = typer.Argument(..., help="DAG id"),
    exec_date: str | None = typer.Option(None, "--exec-date", help="YYYY-MM-DDTHH:MM:SS+HH:MM"),
    run_id: str | None = typer.Option(None, "--run-id", help="Run id"),
) -> None:
    states = commands.get_task_states_for_dag_run(_ctx_client(ctx), dag_id, **_run_ref_opts(exec_date, run_id))
    _emit_records(ctx, states)


@variables_app.command("list", help="List variable keys.")
def variables_list(ctx: typer.Context) -> None:
    _emit_records(ctx, commands.list_variables(_ctx_client(ctx)))


@variables_app.command("get", help="Print a variable value.")
def variables_get(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Variable key"),
    as_json: bool = typer.Option(False, "--json", help="Decode the value as JSON"),
) -> None:
    value = commands.get_variable(_ctx_client(ctx), key, deserialize_json=as_json)
    _emit(ctx, {"key": key, "value": value})


@variables_app.command("set", help="Set a variable.")
def variables_set(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Variable key"),
    value: str = typer.Argument(..., help="Variable value"),
    as_json: bool = typer.Option(False, "--json", help="Parse VALUE as JSON and store it serialized"),
) -> None:
    stored: Any = value
    if as_json:
        try:
            stored = json.loads(value)
        except ValueError as e:
            raise UsageError(f"invalid JSON value: {e}") from e
    commands.set_variable(_ctx_client(ctx), key, stored, serialize_json=as_json)
    _emit(ctx, {"key": key, "set": True})


@variables_app.command("delete", help="Delete a variable.")
def variables_delete(ctx: typer.Context, key: str = typer.Argument(..., help="Variable key")) -> None:
    commands.delete_variable(_ctx_client(ctx), key)
    _emit(ctx, {"key": key, "deleted": True})


@connections_app.command("list", help="List connections.")
def connections_list(ctx: typer.Context) -> None:
    _emit_records(ctx, commands.list_connections(_ctx_client(ctx)))


@connections_app.command("add", help="Add a connection.")
def connections_add(
    ctx: typer.Context,
    conn_id: str = typer.Argument(..., help="Connection id"),
    conn_type: str | None = typer.Option(None, "--conn-type", help="Connection type"),
    description: str | None = typer.Option(None, "--conn-description", help="Description"),
    host: str | None = typer.Option(None, "--conn-host", help="Host"),
    login: str | None = typer.Option(None, "--conn-login", help="Login"),
    password: str | None = typer.Option(None, "--conn-password", help="Password"),
    schema: str | None = typer.Option(None, "--conn-schema", help="Schema"),
    port: int | None = typer.Option(None, "--conn-port", help="Port"),
    extra: str | None = typer.Option(None, "--conn-extra", help="Extra JSON"),
) -> None:
    conn = Connection(
        conn_id=conn_id,
        conn_type=_opt(conn_type),
        description=_opt(description),
        host=_opt(host),
        login=_opt(login),
        password=_opt(password),
        schema=_opt(schema),
        port=_opt(port),
        extra=_opt(extra),
    )
    commands.add_connection(_ctx_client(ctx), conn)
    _emit(ctx, {"connId": conn_id, "added": True})


@connections_app.command("delete", help="Delete a connection.")
def connections_delete(ctx: typer.Context, conn_id: str = typer.Argument(..., help="Connection id")) -> None:
    commands.delete_connection(_ctx_client(ctx), conn_id)
    _emit(ctx, {"connId": conn_id, "deleted": True})


@roles_app.command("list", help="List roles.")
def roles_list(ctx: typer.Context) -> None:
    _emit_records(ctx, commands.list_roles(_ctx_client(ctx)))


@providers_app.command("list", help="List installed providers.")
def providers_list(ctx: typer.Context) -> None:
    _emit_records(ctx, commands.list_providers(_ctx_client(ctx)))


@providers_app.command("get", help="Print full details of one provider.")
def providers_get(ctx: typer.Context, package_name: str = typer.Argument(..., help="Provider package")) -> None:
    _emit(ctx, commands.get_provider(_ctx_client(ctx), package_name).to_json())


@providers_app.command("hooks", help="List hooks registered by providers.")
def providers_hooks(ctx: typer.Context) -> None:
    _emit_records(ctx, commands.list_provider_hooks(_ctx_client(ctx)))


@providers_app.command("links", help="List extra links registered by providers.")
def providers_links(ctx: typer.Context) -> None:
    _emit_records(ctx, commands.list_provider_links(_ctx_client(ctx)))


@providers_app.command("behaviours", help="List connection field behaviours registered by providers.")
def providers_behaviours(ctx: typer.Context) -> None:
    _emit_records(ctx, commands.list_provider_behaviours(_ctx_client(ctx)))


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    try:
        _bootstrap_env()
        result = app(args=argv, prog_name="mwaa-cli", standalone_mode=False)
        if result is None:
            return 0
        return int(result)
    except typer.Exit as e:
        return int(e.exit_code)
    except click.ClickException as e:
        _rich_error(e.format_message())
        return int(e.exit_code)
    except UsageError as e:
        _rich_error(str(e))
        return 2
    except MwaaError as e:
        _rich_error(str(e))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
