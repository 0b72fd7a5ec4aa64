from typing import Optional


class ResolutionError(Exception):
    """Base class for everything the discovery pipeline can raise."""


class FetchFailed(ResolutionError):
    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Failed to fetch {url}: {reason}")


class ValidationFailed(ResolutionError):
    pass


class ParseFailed(ResolutionError):
    pass


class PipelineTimeout(ResolutionError):
    pass


class FallbackExhausted(ResolutionError):
    """Terminal failure: no asset could be produced for the request."""


class NoAssetFound(FallbackExhausted):
    pass


class CustomDefaultFailed(FallbackExhausted):
    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Default image {url} could not be used: {reason}")
