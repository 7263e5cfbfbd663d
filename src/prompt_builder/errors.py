class PromptBuilderError(Exception):
    pass


class GatewayError(PromptBuilderError):
    """Failure surfaced by a gateway call. `status` is the HTTP status when known."""

    def __init__(self, message: str, *, status: int | None = None):
        super().__init__(message)
        self.message = message
        self.status = status


class ValidationError(GatewayError):
    pass


class NotFoundError(GatewayError):
    pass


class ConflictError(GatewayError):
    pass


class NetworkError(GatewayError):
    pass


class GatewayTimeoutError(GatewayError):
    pass
