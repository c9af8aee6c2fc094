"""Domain exceptions raised by the routing pipeline."""


class FleetRoutingError(Exception):
    """Base exception for route optimization errors."""


class UnknownCityError(FleetRoutingError):
    """Raised when a city name is not present in the registry."""

    def __init__(self, city: str) -> None:
        super().__init__(f"Unknown city: {city!r}")
        self.city = city


class OptimizationInProgressError(FleetRoutingError):
    """Raised when an optimization run is requested while another one is active."""


class ProviderError(FleetRoutingError):
    """Raised when the routing provider cannot produce a usable route."""


class ProviderTimeoutError(ProviderError):
    """Raised when the routing provider does not answer within the timeout."""


class ProviderHTTPError(ProviderError):
    """Raised on transport failures or non-2xx provider responses."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProviderMalformedResponseError(ProviderError):
    """Raised when the provider payload is empty or does not match the expected shape."""
