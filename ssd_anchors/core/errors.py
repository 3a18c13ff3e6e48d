from __future__ import annotations


class ConfigError(ValueError):
    """Raised when an anchor or detector configuration is malformed."""
