"""HTTP middleware. Applied in main app; order matters (first added = outermost)."""

from sqlgate.middleware.request_id import RequestIDMiddleware

__all__ = ["RequestIDMiddleware"]
