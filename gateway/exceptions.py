"""Custom exception classes for the WebDAV gateway."""


class GatewayException(Exception):
    """
    Base exception class for all gateway errors.
    """
    pass


class AuthError(GatewayException):
    """
    Raised when Basic credentials or the admin secret are missing or wrong.
    """
    pass


class NotConfiguredError(GatewayException):
    """
    Raised when the loaded configuration has no shards.
    """
    pass


class NotFoundError(GatewayException):
    """
    Raised when a path has no metadata record or its object is missing.
    """
    pass


class BadRequestError(GatewayException):
    """
    Raised for a malformed admin payload or a MOVE without Destination.
    """
    pass


class ConflictError(GatewayException):
    """
    Raised when a collection already exists or the method is not supported.
    """

    def __init__(self, message: str, allowed_methods=None):
        super().__init__(message)
        self.allowed_methods = allowed_methods


class UpstreamFailureError(GatewayException):
    """
    Raised when a remote shard rejects a write.
    """

    def __init__(self, message: str, upstream_status: int = None):
        super().__init__(message)
        self.upstream_status = upstream_status


class ShardConfigError(GatewayException):
    """
    Raised when a remote shard lacks its endpoint, bucket or credentials.
    """
    pass
