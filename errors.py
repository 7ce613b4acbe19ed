"""
Error taxonomy shared by the stores and the route layer.

Each error carries the HTTP status the route layer answers with.
"""


class StoreError(Exception):
    status_code = 500

    def __init__(self, detail: str = ""):
        super().__init__(detail)
        self.detail = detail or self.__class__.__name__


class ValidationError(StoreError):
    status_code = 400


class ConflictError(StoreError):
    status_code = 400


class NotFound(StoreError):
    status_code = 404


class AuthError(StoreError):
    status_code = 401

    MISSING = "missing"
    INVALID = "invalid"

    def __init__(self, kind: str, detail: str = ""):
        super().__init__(detail or "Please authenticate using a valid token")
        self.kind = kind


class UpstreamError(StoreError):
    status_code = 502


class UpstreamTimeout(UpstreamError):
    status_code = 504
