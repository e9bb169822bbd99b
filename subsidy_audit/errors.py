"""Error taxonomy shared by the ledger, the case store and the API layer."""


class ValidationError(ValueError):
    """Caller input is missing or invalid. Maps to a client error."""


class NotFound(LookupError):
    """The requested case does not exist in the data store."""


class UpstreamUnavailable(RuntimeError):
    """The data store could not serve a request and no fallback exists."""
