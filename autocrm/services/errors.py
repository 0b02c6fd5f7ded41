"""Domain errors raised by the ingestion and categorization services."""


class EmailFetchError(Exception):
    """Raw message could not be read from object storage."""


class EmailParseError(Exception):
    """Raw message is fundamentally unreadable."""


class CustomerResolutionError(Exception):
    """Customer could not be found or created."""


class TicketResolutionError(Exception):
    """Ticket could not be found or created."""


class CategorizationError(Exception):
    """Model output failed to parse or validate."""


class CategorizationNotFound(LookupError):
    """No categorization with the given id."""


class AIProviderNotConfigured(Exception):
    """No API key is configured for the selected AI provider."""


class CustomerAlreadyExists(ValueError):
    """A customer with this email already exists."""
