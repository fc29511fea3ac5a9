import logging
from typing import NoReturn

logger = logging.getLogger(__name__)


class EncodeError(Exception):
    """
    Raised when a string cannot be encoded to a Bitsy name.

    :ivar message: human readable reason
    :ivar too_long: True if the failure is caused by the 255 length limit
    """

    def __init__(self, message: str = "Unknown Bitsy encoding error", too_long: bool = False):
        super().__init__(message)
        self.message = message
        self.too_long = too_long

    def __str__(self):
        return self.message


class DecodeError(Exception):
    """Raised when a string is not a valid Bitsy name."""

    def __init__(self, message: str = "Unknown Bitsy decoding error"):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return self.message


class BitsyFault(RuntimeError):
    """Internal inconsistency of the transcoder (a bug, never bad input)."""


def fault(where: str, detail: str = "") -> NoReturn:
    logger.error(f"Fault at {where} in bitsy{': ' + detail if detail else ''}")
    raise BitsyFault(f"bitsy:{where}" + (f": {detail}" if detail else ""))
