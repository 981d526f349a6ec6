from __future__ import annotations

import base64
import json

from typer.testing import CliRunner

import mwaa_cli.main as cli
from mwaa_cli.client import MwaaClient


runner = CliRunner()


def _b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


class _Console:
    def __init__(self, *outputs: tuple[str, str] | str) -> None:
        self.outputs = list(outputs)
        self.commands: list[str] = []

    def __call__(self, *, url: str, headers: dict[str, str], body: bytes, timeout_seconds: int):
        self.commands.append(body.decode("utf-8"))
        out = self.outputs.pop(0) if self.outputs else ""
        stdout, stderr = (out, "") if isinstance(out, str) else out
        return 200, {}, json.dumps({"stdout": _b64(stdout), "stderr": _b64(stderr)}).encode("utf-8")


def _install(monkeypatch, console: _Console) -> list[str]:
    envs: list[str] = []

    def fake_client(g):
        envs.append(g.environment)
        return MwaaClient(
            g.environment,
            issuer=lambda _name: {"CliToken": "t", "WebServerHostname": "h.example.com"},
            http_post=console,
        )

    monkeypatch.setattr(cli, "_client", fake_client)
    monkeypatch.setattr("mwaa_cli.cli_shared.load_dotenv", lambda *a, **k: True)
    return envs


def test_dags_list_plain_json(monkeypatch) -> None:
    console = _Console('[{"dag_id": "etl", "paused": false}]')
    envs = _install(monkeypatch, console)

    result = runner.invoke(cli.app, ["--env", "my-env", "--plain-json", "dags", "list"])

    assert result.exit_code == 0
    assert result.stdout.strip() == '[{"dag_id":"etl","paused":false}]'
    assert envs == ["my-env"]
    assert console.commands == ["dags list --output 'json'"]


def test_environment_from_env_var(monkeypatch) -> None:
    console = _Console("2.2.2")
    envs = _install(monkeypatch, console)

    result = runner.invoke(cli.app, ["version"], env={"MWAA_ENVIRONMENT_NAME": "from-env"})

    assert result.exit_code == 0
    assert json.loads(result.stdout) == {"version": "2.2.2"}
    assert envs == ["from-env"]


def test_list_jobs_zero_limit_sends_nothing(monkeypatch) -> None:
    console = _Console()
    _install(monkeypatch, console)

    result = runner.invoke(cli.app, ["--env", "e", "dags", "list-jobs", "--dag-id", "etl", "--limit", "0"])

    assert result.exit_code == 0
    assert json.loads(result.stdout) == []
    assert console.commands == []


def test_trigger_prints_created_run(monkeypatch) -> None:
    console = _Console("Created <DagRun etl @ 2022-11-05T18:15:05+00:00: r1, externally triggered: True>")
    _install(monkeypatch, console)

    result = runner.invoke(cli.app, ["--env", "e", "dags", "trigger", "etl", "--conf", '{"k": "v"}', "--run-id", "r1"])

    assert result.exit_code == 0
    parsed = json.loads(result.stdout)
    assert parsed["dag_run_id"] == "r1"
    assert parsed["conf"] == {"k": "v"}
    assert parsed["execution_date"] == "2022-11-05T18:15:05+00:00"
    assert console.commands == ["dags trigger --conf '{\"k\":\"v\"}' --run-id 'r1' 'etl'"]


def test_tasks_clear_lists_by_default(monkeypatch) -> None:
    console = _Console("<TaskInstance: etl.extract r1 [failed]>")
    _install(monkeypatch, console)

    result = runner.invoke(cli.app, ["--env", "e", "tasks", "clear", "etl", "--only-failed"])

    assert result.exit_code == 0
    assert json.loads(result.stdout)[0]["task_id"] == "extract"
    assert console.commands == ["tasks clear --only-failed 'etl'"]


def test_run_reports_remote_error(monkeypatch) -> None:
    console = _Console(("", "airflow.exceptions.AirflowException: boom"))
    _install(monkeypatch, console)

    result = runner.invoke(cli.app, ["--env", "e", "run", "dags list"])

    assert result.exit_code == 1
    parsed = json.loads(result.stdout)
    assert parsed["remoteError"] is True
    assert "boom" in parsed["stderr"]
    assert console.commands == ["dags list"]


def test_version_flag() -> None:
    result = runner.invoke(cli.app, ["--version"])
    assert result.exit_code == 0
    assert "mwaa-cli" in result.stdout


def test_help_without_environment() -> None:
    result = runner.invoke(cli.app, ["dags", "--help"], env={"MWAA_ENVIRONMENT_NAME": ""})
    assert result.exit_code == 0
    assert "list-jobs" in result.output


def test_main_missing_environment_is_usage_error(capsys, monkeypatch) -> None:
    monkeypatch.setattr("mwaa_cli.cli_shared.load_dotenv", lambda *a, **k: True)
    monkeypatch.delenv("MWAA_ENVIRONMENT_NAME", raising=False)

    code = cli.main(["dags", "list"])

    captured = capsys.readouterr()
    assert code == 2
    assert "missing MWAA environment name" in captured.err


def test_main_bad_timestamp_is_usage_error(capsys, monkeypatch) -> None:
    _install(monkeypatch, _Console())

    code = cli.main(["--env", "e", "dags", "state", "etl", "yesterday"])

    assert code == 2
    assert "invalid execution date" in capsys.readouterr().err


def test_main_delete_requires_confirmation(capsys, monkeypatch) -> None:
    console = _Console()
    _install(monkeypatch, console)

    code = cli.main(["--env", "e", "dags", "delete", "etl"])

    assert code == 2
    assert "--yes" in capsys.readouterr().err
    assert console.commands == []


def test_main_domain_error_exit_code(capsys, monkeypatch) -> None:
    _install(monkeypatch, _Console("INFO - Filling up the DagBag\nNone"))

    code = cli.main(["--env", "e", "dags", "state", "etl", "2022-11-05T18:15:05+00:00"])

    assert code == 1
    assert "no dag run found" in capsys.readouterr().err


def test_main_click_usage_error(capsys, monkeypatch) -> None:
    monkeypatch.setattr("mwaa_cli.cli_shared.load_dotenv", lambda *a, **k: True)

    code = cli.main(["--env", "e", "dags", "nope"])

    assert code == 2
    assert "No such command" in capsys.readouterr().err


def test_main_unknown_option_is_usage_error(capsys, monkeypatch) -> None:
    console = _Console()
    _install(monkeypatch, console)

    code = cli.main(["--env", "e", "dags", "list", "--bogus"])

    assert code == 2
    assert "--bogus" in capsys.readouterr().err
    assert console.commands == []


def _isolated_aws_config(monkeypatch, tmp_path) -> None:
    monkeypatch.setattr("mwaa_cli.cli_shared.load_dotenv", lambda *a, **k: True)
    monkeypatch.setenv("AWS_CONFIG_FILE", str(tmp_path / "config"))
    monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", str(tmp_path / "credentials"))
    for name in ("AWS_PROFILE", "AWS_DEFAULT_PROFILE", "AWS_REGION", "AWS_DEFAULT_REGION"):
        monkeypatch.delenv(name, raising=False)


def test_main_unknown_profile_is_usage_error(capsys, monkeypatch, tmp_path) -> None:
    _isolated_aws_config(monkeypatch, tmp_path)

    code = cli.main(["--env", "e", "--profile", "no-such-profile", "--region", "us-east-1", "dags", "list"])

    assert code == 2
    assert "unknown AWS profile 'no-such-profile'" in capsys.readouterr().err


def test_main_missing_region_is_usage_error(capsys, monkeypatch, tmp_path) -> None:
    _isolated_aws_config(monkeypatch, tmp_path)

    code = cli.main(["--env", "e", "dags", "list"])

    assert code == 2
    assert "missing AWS region" in capsys.readouterr().err
