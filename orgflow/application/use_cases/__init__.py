"""Use cases: template store and workflow instance runtime."""
