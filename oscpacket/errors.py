"""Exceptions raised while building or reading OSC packets."""

from __future__ import annotations


class OscError(Exception):
    """Base class for every error raised by this package."""

    default_message = "OSC error"

    def __init__(self, message: str | None = None) -> None:
        self.message = self.default_message if message is None else message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class OutOfBufferMemoryError(OscError):
    """The outbound packet would grow beyond the stream's capacity."""

    default_message = "out of buffer memory"


class BundleNotInProgressError(OscError):
    """A bundle was closed while no bundle was open."""

    default_message = "call to EndBundle when bundle is not in progress"


class MessageInProgressError(OscError):
    """A bundle or message was opened or closed while a message was open."""

    default_message = (
        "opening or closing bundle or message while message is in progress"
    )


class MessageNotInProgressError(OscError):
    """A message was closed while no message was open."""

    default_message = "call to EndMessage when message is not in progress"


class MalformedPacketError(OscError, ValueError):
    """The received packet has an invalid size."""

    default_message = "malformed packet"


class MalformedMessageError(OscError, ValueError):
    """The received message is not well formed."""

    default_message = "malformed message"


class MalformedBundleError(OscError, ValueError):
    """The received bundle is not well formed."""

    default_message = "malformed bundle"


class WrongArgumentTypeError(OscError, TypeError):
    """An argument was read as a type other than the one it carries."""

    default_message = "wrong argument type"


class MissingArgumentError(OscError):
    """An argument was read past the end of the argument list."""

    default_message = "missing argument"


class ExcessArgumentError(OscError):
    """Arguments remained when the end of the message was expected."""

    default_message = "too many arguments"