from .current_user import CurrentUserMiddleware
from .metrics_middleware import MetricsMiddleware

__all__ = ["CurrentUserMiddleware", "MetricsMiddleware"]
