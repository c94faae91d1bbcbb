from .logging_middleware import ERROR_CATEGORY_HEADER, RequestLoggingMiddleware, route_label

__all__ = ["ERROR_CATEGORY_HEADER", "RequestLoggingMiddleware", "route_label"]
