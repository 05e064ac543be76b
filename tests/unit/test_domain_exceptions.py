"""Tests for domain exceptions (error_code, message, details) and their HTTP status mapping."""

import pytest

from orgflow.core.exception_handlers import status_for
from orgflow.domain.exceptions import (
    ApproverAuthorizationException,
    OrgflowException,
    ResolutionException,
    ResourceNotFoundException,
    SqlNotConfiguredException,
    TemplateValidationException,
    ValidationException,
    WorkflowConflictException,
    WorkflowConsistencyException,
)


def test_orgflow_exception_default_error_code() -> None:
    """Base OrgflowException uses class name as error_code when not provided."""
    exc = OrgflowException("Something failed")
    assert exc.message == "Something failed"
    assert exc.error_code == "OrgflowException"
    assert exc.details == {}
    assert exc.to_dict() == {
        "error": "OrgflowException",
        "message": "Something failed",
        "details": {},
    }


def test_resource_not_found_details() -> None:
    exc = ResourceNotFoundException("workflow_instance", "wi-1")
    assert exc.message == "workflow_instance not found: wi-1"
    assert exc.details == {"resource_type": "workflow_instance", "resource_id": "wi-1"}


def test_template_validation_summarizes_errors() -> None:
    errors = [
        {"field": "name", "message": "Name is required"},
        {"field": "steps", "message": "Template must have at least one step"},
    ]
    exc = TemplateValidationException(errors)
    assert exc.message == "Name is required (and 1 more)"
    assert exc.errors == errors


def test_resolution_exception_merges_extra_details() -> None:
    exc = ResolutionException("review", "no eligible approver with role MANAGER", role="MANAGER")
    assert exc.details == {
        "step_name": "review",
        "reason": "no eligible approver with role MANAGER",
        "role": "MANAGER",
    }


@pytest.mark.parametrize(
    ("exc", "status"),
    [
        (ValidationException("bad", field="x"), 400),
        (TemplateValidationException([{"field": "name", "message": "Name is required"}]), 400),
        (ResourceNotFoundException("workflow_template", "t"), 404),
        (ApproverAuthorizationException("wi", "review", "a"), 403),
        (WorkflowConflictException("busy"), 409),
        (ResolutionException("review"), 422),
        (WorkflowConsistencyException("broken"), 500),
        (SqlNotConfiguredException(), 503),
        (OrgflowException("unknown"), 400),
    ],
)
def test_status_mapping(exc, status) -> None:
    assert status_for(exc) == status
