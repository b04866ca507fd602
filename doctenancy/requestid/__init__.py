from .middleware import REQUEST_ID_HEADER, RequestIdMiddleware, get_request_id

__all__ = ["REQUEST_ID_HEADER", "RequestIdMiddleware", "get_request_id"]
