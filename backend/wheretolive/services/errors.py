"""Exception hierarchy for ranking runs."""


class WhereToLiveError(Exception):
    """Base exception for all WhereToLive errors."""
    pass


class ConfigurationError(WhereToLiveError):
    """Raised when a setting cannot be interpreted."""
    pass


class ProviderError(WhereToLiveError):
    """A journey provider call failed outright. Fatal to the ranking run."""
    pass


class ProviderRequestError(ProviderError):
    """The provider rejected the request (bad input, denied key, too large)."""
    pass


class ProviderUnavailableError(ProviderError):
    """The provider could not be reached or answered with garbage."""
    pass
