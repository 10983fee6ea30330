"""Generic step-workflow engine."""

from github_contents_cache.workflow.engine import (
    ON_DONE,
    ON_ERROR,
    Step,
    StepResult,
    WorkflowResult,
    run_workflow,
)

__all__ = ["ON_DONE", "ON_ERROR", "Step", "StepResult", "WorkflowResult", "run_workflow"]
