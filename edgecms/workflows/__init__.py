from .engine import WORKFLOWS, WorkflowEngine
from .release import ReleaseVersionWorkflow
from .rollback import RollbackVersionWorkflow
from .steps import RetryPolicy, StepPolicy, StepRunner

__all__ = [
    "WORKFLOWS",
    "ReleaseVersionWorkflow",
    "RetryPolicy",
    "RollbackVersionWorkflow",
    "StepPolicy",
    "StepRunner",
    "WorkflowEngine",
]
