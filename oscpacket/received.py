"""Parsing and validating received OSC packets, messages and bundles."""

from __future__ import annotations

import struct
from collections import deque
from collections.abc import Iterable, Iterator
from typing import Protocol

from .argument import ReceivedMessageArgument, iter_arguments
from .errors import (
    ExcessArgumentError,
    MalformedBundleError,
    MalformedMessageError,
    MalformedPacketError,
    MissingArgumentError,
)
from .types import (
    OSC_SIZEOF_INT32,
    MidiMessage,
    RgbaColor,
    Symbol,
    TimeTag,
    TypeTag,
    is_multiple_of_4,
    is_valid_element_size,
    round_up_4,
)

_BUNDLE_HEADER = b"#bundle\0"

_ZERO_LENGTH_TAGS = frozenset("TFNI")
_FOUR_BYTE_TAGS = frozenset("ifcrm")
_EIGHT_BYTE_TAGS = frozenset("htd")
_STRING_TAGS = frozenset("sS")


class _Element(Protocol):
    @property
    def contents(self) -> bytes: ...

    def size(self) -> int: ...


def _find_str4_end(data: bytes, start: int, end: int) -> int | None:
    """Return the first 4-byte boundary after the string at ``start``.

    Returns None if ``start`` is at ``end`` or the string is not terminated
    before ``end``.
    """
    if start >= end:
        return None
    if data[start] == 0:
        # An empty string, or a SuperCollider integer address pattern.
        return start + 4
    nul = data.find(b"\0", start, end)
    if nul < 0:
        return None
    return start + round_up_4(nul - start + 1)


class ReceivedPacket:
    """A received OSC packet: either a message or a bundle."""

    __slots__ = ("_contents",)

    def __init__(self, contents: bytes) -> None:
        contents = bytes(contents)
        size = len(contents)
        if not is_valid_element_size(size):
            raise MalformedPacketError("invalid packet size")
        if size == 0:
            raise MalformedPacketError("zero length elements not permitted")
        if not is_multiple_of_4(size):
            raise MalformedPacketError("element size must be multiple of four")
        self._contents = contents

    def __repr__(self) -> str:
        return f"ReceivedPacket(size={self.size()})"

    @property
    def contents(self) -> bytes:
        return self._contents

    def is_bundle(self) -> bool:
        return self.size() > 0 and self._contents[:1] == b"#"

    def is_message(self) -> bool:
        return not self.is_bundle()

    def size(self) -> int:
        return len(self._contents)


class ReceivedBundleElement:
    """One element of a received bundle, located by its size slot."""

    __slots__ = ("_data", "_offset")

    def __init__(self, data: bytes, offset: int) -> None:
        self._data = bytes(data)
        self._offset = offset

    def __repr__(self) -> str:
        return f"ReceivedBundleElement(offset={self._offset}, size={self.size()})"

    def size(self) -> int:
        """Return the element size stored in the size slot."""
        return struct.unpack_from(">i", self._data, self._offset)[0]

    @property
    def contents(self) -> bytes:
        start = self._offset + OSC_SIZEOF_INT32
        return self._data[start:start + max(self.size(), 0)]

    def is_bundle(self) -> bool:
        return self.size() > 0 and self.contents[:1] == b"#"

    def is_message(self) -> bool:
        return not self.is_bundle()


class ReceivedMessageArgumentStream:
    """Reads the arguments of a message one after another, checking types."""

    def __init__(self, arguments: Iterable[ReceivedMessageArgument]) -> None:
        self._pending: deque[ReceivedMessageArgument] = deque(arguments)

    def eos(self) -> bool:
        """Return True when every argument has been read."""
        return not self._pending

    def _next(self) -> ReceivedMessageArgument:
        if not self._pending:
            raise MissingArgumentError()
        return self._pending.popleft()

    def read_bool(self) -> bool:
        return self._next().as_bool()

    def read_int32(self) -> int:
        return self._next().as_int32()

    def read_float(self) -> float:
        return self._next().as_float()

    def read_char(self) -> str:
        return self._next().as_char()

    def read_rgba_color(self) -> RgbaColor:
        return RgbaColor(self._next().as_rgba_color())

    def read_midi_message(self) -> MidiMessage:
        return MidiMessage(self._next().as_midi_message())

    def read_int64(self) -> int:
        return self._next().as_int64()

    def read_time_tag(self) -> TimeTag:
        return TimeTag(self._next().as_time_tag())

    def read_double(self) -> float:
        return self._next().as_double()

    def read_blob(self) -> bytes:
        return self._next().as_blob()

    def read_string(self) -> str:
        return self._next().as_string()

    def read_symbol(self) -> Symbol:
        return Symbol(self._next().as_symbol())

    def end(self) -> None:
        """Check that no arguments remain."""
        if not self.eos():
            raise ExcessArgumentError()


class ReceivedMessage:
    """A validated OSC message read from a packet or bundle element."""

    def __init__(self, element: _Element) -> None:
        size = element.size()
        if not is_valid_element_size(size):
            raise MalformedMessageError("invalid message size")
        if size == 0:
            raise MalformedMessageError("zero length messages not permitted")
        if not is_multiple_of_4(size):
            raise MalformedMessageError("message size must be multiple of four")

        data = bytes(element.contents)
        end = size
        self._data = data
        self._type_tags = ""
        self._arguments_offset = end

        tags_begin = _find_str4_end(data, 0, end)
        if tags_begin is None:
            raise MalformedMessageError("unterminated address pattern")
        if tags_begin == end:
            return
        if data[tags_begin] != ord(","):
            raise MalformedMessageError("type tags not present")
        if data[tags_begin + 1] == 0:
            return

        arguments = _find_str4_end(data, tags_begin, end)
        if arguments is None:
            raise MalformedMessageError(
                "type tags were not terminated before end of message"
            )
        tags_end = data.index(b"\0", tags_begin + 1)
        tags = data[tags_begin + 1:tags_end].decode("latin-1")
        self._validate_arguments(data, tags, arguments, end)
        self._type_tags = tags
        self._arguments_offset = arguments

    @staticmethod
    def _validate_arguments(data: bytes, tags: str, argument: int, end: int) -> None:
        array_level = 0
        for tag in tags:
            if tag in _ZERO_LENGTH_TAGS:
                continue
            if tag == TypeTag.ARRAY_BEGIN.value:
                array_level += 1
            elif tag == TypeTag.ARRAY_END.value:
                array_level -= 1
            elif tag in _FOUR_BYTE_TAGS or tag in _EIGHT_BYTE_TAGS:
                if argument == end:
                    raise MalformedMessageError("arguments exceed message size")
                argument += 4 if tag in _FOUR_BYTE_TAGS else 8
                if argument > end:
                    raise MalformedMessageError("arguments exceed message size")
            elif tag in _STRING_TAGS:
                if argument == end:
                    raise MalformedMessageError("arguments exceed message size")
                found = _find_str4_end(data, argument, end)
                if found is None:
                    raise MalformedMessageError("unterminated string argument")
                argument = found
            elif tag == TypeTag.BLOB.value:
                if argument + OSC_SIZEOF_INT32 > end:
                    raise MalformedMessageError("arguments exceed message size")
                (blob_size,) = struct.unpack_from(">I", data, argument)
                argument += OSC_SIZEOF_INT32 + round_up_4(blob_size)
                if argument > end:
                    raise MalformedMessageError("arguments exceed message size")
            else:
                raise MalformedMessageError("unknown type tag")
        if array_level != 0:
            raise MalformedMessageError(
                "array was not terminated before end of message "
                "(expected ']' end of array tag)"
            )

    def __repr__(self) -> str:
        return (
            f"ReceivedMessage(address_pattern={self.address_pattern()!r}, "
            f"type_tags={self._type_tags!r})"
        )

    def address_pattern(self) -> str:
        nul = self._data.find(b"\0")
        return self._data[:nul].decode("utf-8", errors="replace")

    def address_pattern_is_uint32(self) -> bool:
        """Return True for a SuperCollider-style integer address pattern."""
        return self._data[0] == 0

    def address_pattern_as_uint32(self) -> int:
        return struct.unpack_from(">I", self._data, 0)[0]

    def argument_count(self) -> int:
        return len(self._type_tags)

    def type_tags(self) -> str:
        """Return the type tags without the leading comma ("" if there are none)."""
        return self._type_tags

    def __iter__(self) -> Iterator[ReceivedMessageArgument]:
        return iter_arguments(self._type_tags, self._data, self._arguments_offset)

    def argument_stream(self) -> ReceivedMessageArgumentStream:
        return ReceivedMessageArgumentStream(self)


class ReceivedBundle:
    """A validated OSC bundle read from a packet or bundle element."""

    def __init__(self, element: _Element) -> None:
        size = element.size()
        if not is_valid_element_size(size):
            raise MalformedBundleError("invalid bundle size")
        if size < 16:
            raise MalformedBundleError("packet too short for bundle")
        if not is_multiple_of_4(size):
            raise MalformedBundleError("bundle size must be multiple of four")

        data = bytes(element.contents)
        if data[:8] != _BUNDLE_HEADER:
            raise MalformedBundleError("bad bundle address pattern")

        end = size
        offsets: list[int] = []
        p = 16
        while p < end:
            if p + OSC_SIZEOF_INT32 > end:
                raise MalformedBundleError("packet too short for elementSize")
            (element_size,) = struct.unpack_from(">I", data, p)
            if element_size & 0x03:
                raise MalformedBundleError(
                    "bundle element size must be multiple of four"
                )
            offsets.append(p)
            p += OSC_SIZEOF_INT32 + element_size
            if p > end:
                raise MalformedBundleError("packet too short for bundle element")
        if p != end:
            raise MalformedBundleError("bundle contents ")

        self._data = data
        self._offsets = offsets

    def __repr__(self) -> str:
        return (
            f"ReceivedBundle(time_tag={self.time_tag()}, "
            f"element_count={self.element_count()})"
        )

    def time_tag(self) -> int:
        return struct.unpack_from(">Q", self._data, 8)[0]

    def element_count(self) -> int:
        return len(self._offsets)

    def __iter__(self) -> Iterator[ReceivedBundleElement]:
        for offset in self._offsets:
            yield ReceivedBundleElement(self._data, offset)