"""FastAPI dependencies (composition root).

Routes depend on these; no route constructs repositories or services itself.
"""

from orgflow.api.v1.dependencies.organization import (
    get_department_id,
    get_organization_id,
)
from orgflow.api.v1.dependencies.workflow import (
    get_template_service,
    get_template_service_for_write,
    get_workflow_runtime,
    get_workflow_runtime_for_write,
)

__all__ = [
    "get_department_id",
    "get_organization_id",
    "get_template_service",
    "get_template_service_for_write",
    "get_workflow_runtime",
    "get_workflow_runtime_for_write",
]
