"""Application interfaces (ports): repository protocols.

Define contracts for infrastructure implementations (DIP).
No runtime imports from orgflow.infrastructure or orgflow.api.
"""

from orgflow.application.interfaces.repositories import (
    IMembershipDirectory,
    IWorkflowInstanceRepository,
    IWorkflowTemplateRepository,
)

__all__ = [
    "IMembershipDirectory",
    "IWorkflowInstanceRepository",
    "IWorkflowTemplateRepository",
]
