"""Error kinds shared by the core and the shell.

Validation and lookup errors propagate to callers. Delivery failures are
absorbed by the delivery worker and never reach its caller.
"""


class StrikeAlertsError(Exception):
    """Base class for all lightning alert errors."""


class ValidationError(StrikeAlertsError):
    """Input was malformed or out of range."""


class InvalidCoordinate(ValidationError):
    """A coordinate was non-finite or outside the valid range."""


class NotFound(StrikeAlertsError):
    """A referenced record does not exist."""


class DeliveryFailure(StrikeAlertsError):
    """The delivery capability could not confirm delivery."""


class ServiceUnavailable(StrikeAlertsError):
    """An external service could not be reached."""
