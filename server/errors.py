class ThripsError(Exception):
    """Base class for errors raised by the thrips server."""


class ValidationError(ThripsError):
    """Input that cannot be accepted: a bad count on write, a bad timestamp on read."""


class StoreError(ThripsError):
    """The backing store failed to insert or fetch."""


class ConfigError(ThripsError):
    """Configuration from the environment is invalid."""
