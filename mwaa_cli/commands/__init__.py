from .connections import add_connection, delete_connection, list_connections
from .dags import (
    DagJobsQuery,
    DagRunFilter,
    DagRunRequest,
    dags_report,
    delete_dag,
    find_dag_run,
    get_dag_state,
    list_dag_jobs,
    list_dag_runs,
    list_dags,
    pause_dag,
    show_dag,
    trigger_dag_run,
    unpause_dag,
)
from .providers import (
    get_provider,
    list_provider_behaviours,
    list_provider_hooks,
    list_provider_links,
    list_providers,
)
from .roles import list_roles
from .tasks import (
    ClearTasksRequest,
    clear_tasks,
    get_task_failed_deps,
    get_task_state,
    get_task_states_for_dag_run,
    list_dag_tasks,
    list_tasks_to_clear,
)
from .variables import delete_variable, get_variable, list_variables, set_variable
from .version import get_version

__all__ = [
    "ClearTasksRequest",
    "DagJobsQuery",
    "DagRunFilter",
    "DagRunRequest",
    "add_connection",
    "clear_tasks",
    "dags_report",
    "delete_connection",
    "delete_dag",
    "delete_variable",
    "find_dag_run",
    "get_dag_state",
    "get_provider",
    "get_task_failed_deps",
    "get_task_state",
    "get_task_states_for_dag_run",
    "get_variable",
    "get_version",
    "list_connections",
    "list_dag_jobs",
    "list_dag_runs",
    "list_dag_tasks",
    "list_dags",
    "list_provider_behaviours",
    "list_provider_hooks",
    "list_provider_links",
    "list_providers",
    "list_roles",
    "list_tasks_to_clear",
    "list_variables",
    "pause_dag",
    "set_variable",
    "show_dag",
    "trigger_dag_run",
    "unpause_dag",
]
