"""Error taxonomy for the log explorer engine."""


class LogExplorerError(Exception):
    """Base class for all engine errors."""


class TransportError(LogExplorerError):
    """Network or HTTP failure talking to the log query API."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedResponse(TransportError):
    """The API answered, but the body does not match the expected envelope."""


class MalformedQuery(LogExplorerError):
    """The backend rejected a custom/advanced query, or the query is blank.

    Surfaced inline near the query input; never clears loaded results.
    """


class StaleResponse(LogExplorerError):
    """A response arrived for an epoch that is no longer current."""

    def __init__(self, issued_epoch: int, current_epoch: int):
        super().__init__(
            f"response for epoch {issued_epoch} dropped (current epoch {current_epoch})"
        )
        self.issued_epoch = issued_epoch
        self.current_epoch = current_epoch
