from orgflow.application.use_cases.workflow_templates.template_service import (
    WorkflowTemplateService,
)

__all__ = ["WorkflowTemplateService"]
