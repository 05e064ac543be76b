"""Application services: template validation, condition evaluation, actor resolution, transitions."""

from orgflow.application.services.actor_resolver import ActorResolver
from orgflow.application.services.condition_evaluator import condition_matches, matches
from orgflow.application.services.template_validator import (
    collect_template_errors,
    validate_template_definition,
)
from orgflow.application.services.transition_engine import (
    StepTarget,
    Target,
    TerminalTarget,
    WalkResult,
    next_target,
    pass_through_transition,
    walk_to_applicable_step,
)

__all__ = [
    "ActorResolver",
    "StepTarget",
    "Target",
    "TerminalTarget",
    "WalkResult",
    "collect_template_errors",
    "condition_matches",
    "matches",
    "next_target",
    "pass_through_transition",
    "validate_template_definition",
    "walk_to_applicable_step",
]
