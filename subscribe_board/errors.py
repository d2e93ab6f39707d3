"""Exceptions raised by the board core and surfaced to the ingress."""


class ConfigurationError(Exception):
    """Required external identifiers (bot token, chat id) are missing."""


class InvalidPayloadError(ValueError):
    """The aggregation input is malformed."""


class StrictModeViolation(RuntimeError):
    """Photo dashboard desired, current one is text and upgrading is disabled."""


class QueueFullError(RuntimeError):
    def __init__(self, key: str, maxsize: int):
        self.key = key
        self.maxsize = maxsize
        super().__init__(f"board queue for '{key}' is full (maxsize={maxsize})")
