"""Dispatching received OSC packets to message handlers."""

from __future__ import annotations

import abc
from collections.abc import Callable
from typing import Any

from .received import ReceivedBundle, ReceivedMessage, ReceivedPacket

MessageFunction = Callable[[ReceivedMessage, Any], None]


class OscPacketListener(abc.ABC):
    """Parses packets and hands every message they hold to :meth:`process_message`.

    Bundles are walked depth first; their time tags are ignored.
    """

    def process_packet(self, data: bytes, remote_endpoint: Any) -> None:
        """Parse ``data`` and dispatch its contents."""
        packet = ReceivedPacket(data)
        if packet.is_bundle():
            self.process_bundle(ReceivedBundle(packet), remote_endpoint)
        else:
            self.process_message(ReceivedMessage(packet), remote_endpoint)

    def process_bundle(self, bundle: ReceivedBundle, remote_endpoint: Any) -> None:
        """Dispatch every element of ``bundle`` in order."""
        for element in bundle:
            if element.is_bundle():
                self.process_bundle(ReceivedBundle(element), remote_endpoint)
            else:
                self.process_message(ReceivedMessage(element), remote_endpoint)

    @abc.abstractmethod
    def process_message(self, message: ReceivedMessage, remote_endpoint: Any) -> None:
        """Handle one received message."""


class MessageMappingOscPacketListener(OscPacketListener):
    """Calls the function registered for each message's address pattern.

    Messages whose address has no registered function are ignored.
    """

    def __init__(self) -> None:
        self._functions: dict[str, MessageFunction] = {}

    def register_message_function(
        self, address_pattern: str, function: MessageFunction
    ) -> None:
        """Register ``function(message, remote_endpoint)`` for an address.

        The first registration for an address is kept; later ones are ignored.
        """
        self._functions.setdefault(address_pattern, function)

    def process_message(self, message: ReceivedMessage, remote_endpoint: Any) -> None:
        function = self._functions.get(message.address_pattern())
        if function is not None:
            function(message, remote_endpoint)