"""Domain errors raised by the blueprint services and mapped to HTTP by routers."""


class BlueprintError(Exception):
    """Base class for blueprint workflow failures."""


class BlueprintNotFound(BlueprintError, LookupError):
    """Record is missing, owned by someone else, or its share token is not resolvable."""


class ValidationError(BlueprintError, ValueError):
    """Request input was rejected before any provider call."""


class InvalidSection(ValidationError):
    def __init__(self, section):
        self.section = section
        super().__init__(f"Invalid section: {section!r}")


class ProviderError(BlueprintError):
    """Upstream model call failed (network, timeout, auth or rate limit)."""


class MalformedResponse(BlueprintError):
    """Model output could not be parsed into the requested JSON shape."""

    def __init__(self, message: str, raw: str | None = None):
        self.raw = raw
        super().__init__(message)
