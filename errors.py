class SearchError(Exception):
    """A search that ends in a plain-text error page instead of results."""
    status = 500

    def __init__(self, message, status=None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status

    def body(self):
        return f"{self.status} Error: {self.message}"


class SearchRejected(SearchError):
    """Missing input, provider error, name mismatch or popularity filter."""
    status = 404


class UpstreamError(SearchError):
    """Upstream API unreachable, timed out or returned something unusable."""
    status = 502
