class LabelingError(Exception):
    """Request-level failure surfaced to the caller as ``{"error": message}``."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequest(LabelingError):
    status_code = 400


class ServiceUnavailable(LabelingError):
    pass


class EmptyResponse(LabelingError):
    pass


class MalformedResponse(LabelingError):
    pass


class UpstreamFailure(LabelingError):
    pass
