"""
Error Taxonomy
Exceptions raised by the catalog scraper.

Only ``ConfigurationError`` is process-fatal. Navigation failures are
caught per target and turned into failed-queue entries; missing required
fields are a policy outcome and never raised.
"""


class CatalogScraperError(Exception):
    """Base class for all catalog scraper errors."""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(CatalogScraperError):
    """A required setting or credential is missing."""


class SchemaError(CatalogScraperError, ValueError):
    """A selector schema has an invalid shape."""


class NavigationFailure(CatalogScraperError):
    """Navigation timed out, failed on the network, or returned an HTTP error."""

    def __init__(self, message: str, url: str = "", **kwargs):
        super().__init__(message, kwargs)
        self.url = url


class MalformedPersistedState(CatalogScraperError):
    """A persisted JSON artifact could not be read or parsed."""

    def __init__(self, message: str, path: str = "", **kwargs):
        super().__init__(message, kwargs)
        self.path = path


class ServiceError(CatalogScraperError):
    """The embedding or generation service call failed."""

    def __init__(self, message: str, service: str = "", **kwargs):
        super().__init__(message, kwargs)
        self.service = service
