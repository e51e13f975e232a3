from __future__ import annotations


class PortaTimeError(ValueError):
    pass


class InvalidArgumentError(PortaTimeError):
    """Timezone argument of an unsupported type, or a zone the database cannot resolve."""


class ParseError(PortaTimeError):
    """Datetime or date expression that cannot be interpreted."""
