"""HTTP middleware: request id and logging context.

Applied in main app; import and use from orgflow.main.
"""

from orgflow.middleware.request_context import RequestContextMiddleware

__all__ = [
    "RequestContextMiddleware",
]
