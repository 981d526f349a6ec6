"""Typed records parsed out of Airflow console output.

Records are frozen dataclasses. Optional attributes use the tri-state model from
:mod:`mwaa_cli.tristate`, so a record built from JSON remembers whether a key
was missing (``UNSET``), ``null`` (``NULL``) or present, and ``to_json`` writes
it back the same way.
"""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime
from typing import Any

from .errors import ParseError
from .timefmt import format_decimal, parse_decimal
from .tristate import NULL, UNSET, Absent, TriState, Value, from_json_key, put_json_key


class DagState(str, enum.Enum):
    QUEUED = "queued"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"

    @classmethod
    def from_value(cls, raw: str) -> DagState:
        try:
            return cls(str(raw or "").strip())
        except ValueError as e:
            raise ParseError(f"{raw!r} is not a valid DagState") from e


# Task instance states printed by `tasks clear` listings.
CLEARED_TASK_STATES = ("failed", "success", "skipped")


def _json_value(val: Any) -> Any:
    if isinstance(val, datetime):
        return format_decimal(val)
    if isinstance(val, enum.Enum):
        return val.value
    if is_dataclass(val) and not isinstance(val, type):
        return record_to_json(val)
    if isinstance(val, (list, tuple)):
        return [_json_value(v) for v in val]
    return val


def record_to_json(record: Any) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for f in fields(record):
        key = f.metadata.get("json", f.name)
        val = getattr(record, f.name)
        if isinstance(val, (Absent, Value)):
            put_json_key(out, key, val, _json_value)
        else:
            out[key] = _json_value(val)
    return out


def _require(obj: dict[str, Any], key: str, *, label: str) -> str:
    v = str(obj.get(key) or "").strip()
    if not v:
        raise ParseError(f"invalid {label}: missing {key}")
    return v


def _s(obj: dict[str, Any], key: str) -> str:
    val = obj.get(key)
    return "" if val is None else str(val)


def _tri_str(obj: dict[str, Any], key: str) -> TriState[str]:
    return from_json_key(obj, key, str)


def _tri_time(obj: dict[str, Any], key: str) -> TriState[datetime]:
    opt = from_json_key(obj, key)
    if not isinstance(opt, Value):
        return opt
    raw = opt.value
    if isinstance(raw, datetime):
        return Value(raw)
    if not str(raw).strip():
        return NULL
    try:
        return Value(parse_decimal(str(raw)))
    except ValueError as e:
        raise ParseError(f"invalid timestamp for {key}: {raw!r}") from e


def _bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    s = str(raw).strip().lower()
    if s in {"true", "1", "yes"}:
        return True
    if s in {"false", "0", "no"}:
        return False
    raise ParseError(f"invalid boolean: {raw!r}")


def _tri_bool(obj: dict[str, Any], key: str) -> TriState[bool]:
    return from_json_key(obj, key, _bool)


def _str_tuple(raw: Any) -> tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        return tuple(p.strip() for p in raw.replace(",", "\n").splitlines() if p.strip())
    if isinstance(raw, (list, tuple)):
        return tuple(str(v) for v in raw)
    return (str(raw),)


def _dict_tuple(raw: Any) -> tuple[dict[str, Any], ...]:
    if not isinstance(raw, list):
        return ()
    return tuple(v for v in raw if isinstance(v, dict))


@dataclass(frozen=True)
class Dag:
    dag_id: str
    filepath: TriState[str] = UNSET
    owner: TriState[str] = UNSET
    paused: TriState[bool] = UNSET

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> Dag:
        return cls(
            dag_id=_require(obj, "dag_id", label="dag"),
            filepath=_tri_str(obj, "filepath"),
            owner=_tri_str(obj, "owner"),
            paused=_tri_bool(obj, "paused"),
        )

    def to_json(self) -> dict[str, Any]:
        return record_to_json(self)


@dataclass(frozen=True)
class DagRun:
    dag_id: str
    dag_run_id: TriState[str] = UNSET
    state: TriState[str] = UNSET
    execution_date: TriState[datetime] = UNSET
    start_date: TriState[datetime] = UNSET
    end_date: TriState[datetime] = UNSET
    external_trigger: TriState[bool] = UNSET
    conf: TriState[dict[str, Any]] = UNSET

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> DagRun:
        # `dags list-runs` calls it run_id; serialized records use dag_run_id.
        run_key = "dag_run_id" if "dag_run_id" in obj else "run_id"
        return cls(
            dag_id=_require(obj, "dag_id", label="dag run"),
            dag_run_id=_tri_str(obj, run_key),
            state=_tri_str(obj, "state"),
            execution_date=_tri_time(obj, "execution_date"),
            start_date=_tri_time(obj, "start_date"),
            end_date=_tri_time(obj, "end_date"),
            external_trigger=_tri_bool(obj, "external_trigger"),
            conf=from_json_key(obj, "conf"),
        )

    def to_json(self) -> dict[str, Any]:
        return record_to_json(self)


@dataclass(frozen=True)
class DagJob:
    dag_id: TriState[str] = UNSET
    state: TriState[str] = UNSET
    job_type: TriState[str] = UNSET
    start_date: TriState[str] = UNSET
    end_date: TriState[str] = UNSET

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> DagJob:
        return cls(
            dag_id=_tri_str(obj, "dag_id"),
            state=_tri_str(obj, "state"),
            job_type=_tri_str(obj, "job_type"),
            start_date=_tri_str(obj, "start_date"),
            end_date=_tri_str(obj, "end_date"),
        )

    def to_json(self) -> dict[str, Any]:
        return record_to_json(self)


@dataclass(frozen=True)
class DagReportEntry:
    file: str
    duration: str = ""
    dag_num: str = ""
    task_num: str = ""
    dags: tuple[str, ...] = ()

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> DagReportEntry:
        return cls(
            file=_s(obj, "file"),
            duration=_s(obj, "duration"),
            dag_num=_s(obj, "dag_num"),
            task_num=_s(obj, "task_num"),
            dags=_str_tuple(obj.get("dags")),
        )

    def to_json(self) -> dict[str, Any]:
        return record_to_json(self)


@dataclass(frozen=True)
class Task:
    """A task instance line from a `tasks clear` listing."""

    match_string: str
    dag_id: str
    task_id: str
    dag_run_id: str
    state: str

    def to_json(self) -> dict[str, Any]:
        return record_to_json(self)


@dataclass(frozen=True)
class DagTask:
    task_id: str
    operator: TriState[str] = UNSET

    def to_json(self) -> dict[str, Any]:
        return record_to_json(self)


@dataclass(frozen=True)
class TaskState:
    dag_id: str
    task_id: str
    state: TriState[str] = UNSET
    execution_date: TriState[datetime] = UNSET
    start_date: TriState[datetime] = UNSET
    end_date: TriState[datetime] = UNSET

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> TaskState:
        return cls(
            dag_id=_require(obj, "dag_id", label="task state"),
            task_id=_require(obj, "task_id", label="task state"),
            state=_tri_str(obj, "state"),
            execution_date=_tri_time(obj, "execution_date"),
            start_date=_tri_time(obj, "start_date"),
            end_date=_tri_time(obj, "end_date"),
        )

    def to_json(self) -> dict[str, Any]:
        return record_to_json(self)


def _port(raw: Any) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise ParseError(f"invalid connection port: {raw!r}") from e


def _extra(raw: Any) -> str:
    if isinstance(raw, str):
        return raw
    return json.dumps(raw, separators=(",", ":"), sort_keys=True)


@dataclass(frozen=True)
class Connection:
    conn_id: str
    conn_type: TriState[str] = UNSET
    description: TriState[str] = UNSET
    host: TriState[str] = UNSET
    login: TriState[str] = UNSET
    password: TriState[str] = UNSET
    schema: TriState[str] = UNSET
    port: TriState[int] = UNSET
    extra: TriState[str] = UNSET

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> Connection:
        extra_key = "extra_dejson" if "extra_dejson" in obj else "extra"
        return cls(
            conn_id=_require(obj, "conn_id", label="connection"),
            conn_type=_tri_str(obj, "conn_type"),
            description=_tri_str(obj, "description"),
            host=_tri_str(obj, "host"),
            login=_tri_str(obj, "login"),
            password=_tri_str(obj, "password"),
            schema=_tri_str(obj, "schema"),
            port=from_json_key(obj, "port", _port),
            extra=from_json_key(obj, extra_key, _extra),
        )

    def to_json(self) -> dict[str, Any]:
        return record_to_json(self)


@dataclass(frozen=True)
class Variable:
    key: str
    value: TriState[str] = UNSET

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> Variable:
        return cls(key=_require(obj, "key", label="variable"), value=_tri_str(obj, "val"))

    def to_json(self) -> dict[str, Any]:
        return record_to_json(self)


@dataclass(frozen=True)
class Role:
    name: str

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> Role:
        return cls(name=_require(obj, "name", label="role"))

    def to_json(self) -> dict[str, Any]:
        return record_to_json(self)


@dataclass(frozen=True)
class Provider:
    package_name: str
    description: TriState[str] = UNSET
    version: TriState[str] = UNSET

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> Provider:
        return cls(
            package_name=_require(obj, "package_name", label="provider"),
            description=_tri_str(obj, "description"),
            version=_tri_str(obj, "version"),
        )

    def to_json(self) -> dict[str, Any]:
        return record_to_json(self)


@dataclass(frozen=True)
class ProviderHook:
    connection_type: str
    class_name: str = field(default="", metadata={"json": "class"})
    conn_id_attribute_name: str = ""
    package_name: str = ""
    hook_name: str = ""

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> ProviderHook:
        return cls(
            connection_type=_s(obj, "connection_type"),
            class_name=_s(obj, "class"),
            conn_id_attribute_name=_s(obj, "conn_id_attribute_name"),
            package_name=_s(obj, "package_name"),
            hook_name=_s(obj, "hook_name"),
        )

    def to_json(self) -> dict[str, Any]:
        return record_to_json(self)


@dataclass(frozen=True)
class ProviderLink:
    extra_link_class_name: str

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> ProviderLink:
        return cls(extra_link_class_name=_s(obj, "extra_link_class_name"))

    def to_json(self) -> dict[str, Any]:
        return record_to_json(self)


@dataclass(frozen=True)
class ProviderBehaviour:
    field_behaviours: Any

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> ProviderBehaviour:
        return cls(field_behaviours=obj.get("field_behaviours"))

    def to_json(self) -> dict[str, Any]:
        return record_to_json(self)


@dataclass(frozen=True)
class ProviderDetail:
    package_name: str = field(metadata={"json": "package-name"})
    name: str = ""
    description: str = ""
    versions: tuple[str, ...] = ()
    additional_dependencies: tuple[str, ...] = field(default=(), metadata={"json": "additional-dependencies"})
    integrations: tuple[dict[str, Any], ...] = ()
    hook_class_names: tuple[str, ...] = field(default=(), metadata={"json": "hook-class-names"})
    extra_links: tuple[str, ...] = field(default=(), metadata={"json": "extra-links"})
    connection_types: tuple[dict[str, Any], ...] = field(default=(), metadata={"json": "connection-types"})
    secrets_backends: tuple[str, ...] = field(default=(), metadata={"json": "secrets-backends"})
    logging: tuple[str, ...] = ()

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> ProviderDetail:
        return cls(
            package_name=_require(obj, "package-name", label="provider detail"),
            name=_s(obj, "name"),
            description=_s(obj, "description"),
            versions=_str_tuple(obj.get("versions")),
            additional_dependencies=_str_tuple(obj.get("additional-dependencies")),
            integrations=_dict_tuple(obj.get("integrations")),
            hook_class_names=_str_tuple(obj.get("hook-class-names")),
            extra_links=_str_tuple(obj.get("extra-links")),
            connection_types=_dict_tuple(obj.get("connection-types")),
            secrets_backends=_str_tuple(obj.get("secrets-backends")),
            logging=_str_tuple(obj.get("logging")),
        )

    def to_json(self) -> dict[str, Any]:
        return record_to_json(self)
