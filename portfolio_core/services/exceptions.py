# portfolio_core/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors. Missing market data is
NOT an error in this package: providers return None and the valuation
layer degrades gracefully. Exceptions are reserved for malformed input
and for provider internals (where tenacity decides whether to retry).

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    │   ├── InvalidPositionError
    │   ├── InvalidDateError
    │   └── InvalidIntervalError
    ├── MarketDataError
    │   ├── ProviderUnavailableError
    │   ├── TickerNotFoundError
    │   └── RateLimitError
    └── FXRateError
        └── FXConversionError
"""


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when input validation fails.

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class InvalidPositionError(ValidationError):
    """
    Raised when a raw position cannot be valuated.

    Examples:
    - Unparseable transaction date
    - Zero, negative or non-finite quantity
    - Zero, negative or non-finite cost per unit

    Attributes:
        ticker: Ticker of the offending position
    """

    def __init__(self, ticker: str, reason: str, field: str | None = None) -> None:
        self.ticker = ticker
        self.reason = reason
        super().__init__(f"Invalid position '{ticker}': {reason}", field=field)


class InvalidDateError(ValidationError):
    """Raised when a date string is not YYYY-MM-DD or YYYY/MM/DD."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(
            f"Invalid date: '{value}'. Expected YYYY-MM-DD or YYYY/MM/DD",
            field="transaction_date",
        )


class InvalidIntervalError(ValidationError):
    """
    Raised when an invalid interval is specified for snapshot dates.

    Valid intervals are: daily, weekly, monthly
    """

    def __init__(self, interval: str) -> None:
        self.interval = interval
        super().__init__(
            f"Invalid interval: '{interval}'. Valid options: daily, weekly, monthly",
            field="interval"
        )


# =============================================================================
# MARKET DATA PROVIDER ERRORS
# =============================================================================


class MarketDataError(ServiceError):
    """
    Base exception for market data provider failures.

    Attributes:
        provider: Name of the provider that failed
    """

    def __init__(self, message: str, provider: str | None = None) -> None:
        self.provider = provider
        super().__init__(message)


class ProviderUnavailableError(MarketDataError):
    """
    Raised when a market data provider is temporarily unavailable.

    Examples:
    - Network timeout
    - Server errors (500, 502, 503)

    This is a retryable error.
    """

    def __init__(self, provider: str, reason: str) -> None:
        message = f"Provider '{provider}' is unavailable: {reason}"
        super().__init__(message, provider=provider)
        self.reason = reason


class TickerNotFoundError(MarketDataError):
    """
    Raised when a symbol is not known to the provider.

    This is NOT a retryable error.
    """

    def __init__(self, ticker: str, provider: str) -> None:
        message = f"Ticker '{ticker}' not found by {provider}"
        super().__init__(message, provider=provider)
        self.ticker = ticker


class RateLimitError(MarketDataError):
    """
    Raised when the provider's rate limit has been exceeded (HTTP 429).

    Retried with exponential backoff on top of the request pacing.
    """

    def __init__(self, provider: str) -> None:
        super().__init__(f"Rate limit exceeded for provider '{provider}'", provider=provider)


# =============================================================================
# FX RATE ERRORS
# =============================================================================


class FXRateError(ServiceError):
    """
    Base exception for FX rate errors.

    Attributes:
        base_currency: The base currency code
        quote_currency: The quote currency code
    """

    def __init__(
            self,
            message: str,
            base_currency: str | None = None,
            quote_currency: str | None = None,
    ) -> None:
        self.base_currency = base_currency
        self.quote_currency = quote_currency
        super().__init__(message)


class FXConversionError(FXRateError):
    """
    Raised when a currency pair string cannot be interpreted.

    Example: "USDJP" (not two three-letter codes)
    """

    def __init__(self, pair: str, reason: str) -> None:
        self.pair = pair
        super().__init__(f"Invalid currency pair '{pair}': {reason}")
