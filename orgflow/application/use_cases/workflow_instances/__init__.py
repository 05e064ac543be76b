from orgflow.application.use_cases.workflow_instances.workflow_runtime import (
    WorkflowRuntime,
)

__all__ = ["WorkflowRuntime"]
