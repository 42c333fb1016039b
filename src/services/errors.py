class ServiceError(Exception):
    pass


class InvalidURLError(ServiceError):
    pass


class BlockedURLError(InvalidURLError):
    pass


class FetchFailedError(ServiceError):
    pass


class UnsupportedContentError(FetchFailedError):
    def __init__(self, url: str, content_type: str):
        super().__init__(f"Non-HTML content type {content_type!r}: {url}")
        self.url = url
        self.content_type = content_type


class NetworkTimeoutError(ServiceError):
    def __init__(self, url: str, timeout_seconds: float):
        super().__init__(f"Network timeout after {timeout_seconds}s: {url}")
        self.url = url
        self.timeout_seconds = timeout_seconds
