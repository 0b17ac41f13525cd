"""dbtpulse: live, dependency-layered progress for dbt runs.

Launches dbt (or any shell command) in the background, parses its console
log line by line into a per-unit status table and groups the units into
dependency layers taken from the project manifest.  Finished runs are kept
in a local SQLite history and re-parsed on reopen.
"""

__version__ = "0.1.0"
__description__ = "Live, dependency-layered progress dashboard for dbt runs"

from dbtpulse.core.dependency_index import DependencyIndex
from dbtpulse.core.layer_assigner import LayerAssigner
from dbtpulse.core.process_supervisor import ProcessSupervisor
from dbtpulse.core.progress import RunProgressModel
from dbtpulse.core.session import RunSession
from dbtpulse.cli.app import app as cli

__all__ = [
    "DependencyIndex",
    "LayerAssigner",
    "ProcessSupervisor",
    "RunProgressModel",
    "RunSession",
    "cli",
    "__version__",
]
