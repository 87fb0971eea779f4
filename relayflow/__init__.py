"""relayflow: budget-governed multi-model workflow execution."""

from .budget import BudgetGovernor, CostEstimator
from .config import RelayflowConfig, load_config
from .contracts import RunRequest, Workflow, WorkflowReport, WorkflowStep
from .engine import WorkflowEngine
from .graph import parallel_levels, resolve
from .ledger import get_ledger
from .templating import interpolate
from .tools import ToolRegistry

__version__ = "0.1.0"
__all__ = [
    "BudgetGovernor",
    "CostEstimator",
    "RelayflowConfig",
    "RunRequest",
    "ToolRegistry",
    "Workflow",
    "WorkflowEngine",
    "WorkflowReport",
    "WorkflowStep",
    "get_ledger",
    "interpolate",
    "load_config",
    "parallel_levels",
    "resolve",
]
