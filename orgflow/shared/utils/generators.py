"""Entity id generation (CUID2)."""

from cuid2 import cuid_wrapper

_next_cuid = cuid_wrapper()


def generate_cuid() -> str:
    """Return a new collision-resistant id.

    Every persisted row (templates, instances, step executions, actor groups,
    decisions, memberships) is keyed by one of these.
    """
    return str(_next_cuid())
