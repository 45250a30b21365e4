"""Domain exceptions shared by services and the HTTP layer."""


class FundManagerError(Exception):
    """Base exception for fund manager domain errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PreconditionError(FundManagerError):
    """Operation attempted on data not yet in the required state."""

    status_code = 400


class NotFoundError(FundManagerError):
    """Referenced portfolio, holding or peer recommendation does not exist."""

    status_code = 404


class PortfolioValidationError(FundManagerError):
    """Uploaded portfolio rows are invalid (empty, bad CSV, weights not summing to 100)."""

    status_code = 400


class MalformedResponseError(FundManagerError):
    """Language model text did not parse as the expected JSON shape."""

    status_code = 502


class UpstreamUnavailable(FundManagerError):
    """
    An upstream provider failed (network error, timeout, non-2xx).

    Raised inside live providers only; the provider absorbs it by substituting
    mock data, so it never reaches callers of the gateway.
    """

    status_code = 503
