"""OSC value types, stream markers and size helpers."""

from __future__ import annotations

import enum
from dataclasses import dataclass

OSC_SIZEOF_INT32 = 4
OSC_SIZEOF_UINT32 = 4
OSC_SIZEOF_INT64 = 8
OSC_SIZEOF_UINT64 = 8

OSC_INT32_MAX = 0x7FFFFFFF
# Element sizes are int32 rounded up to a multiple of four.
OSC_BUNDLE_ELEMENT_SIZE_MAX = 0x7FFFFFFC

_UINT32_MAX = 0xFFFFFFFF
_UINT64_MAX = 0xFFFFFFFFFFFFFFFF
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1


def is_valid_element_size(size: int) -> bool:
    """Return True if ``size`` is a permissible bundle element or blob size."""
    return 0 <= size <= OSC_BUNDLE_ELEMENT_SIZE_MAX


def is_multiple_of_4(size: int) -> bool:
    """Return True if ``size`` is a multiple of four."""
    return (size & 0x03) == 0


def round_up_4(size: int) -> int:
    """Round ``size`` up to the next multiple of four."""
    return (size + 3) & ~0x03


class TypeTag(str, enum.Enum):
    """OSC argument type tags."""

    TRUE = "T"
    FALSE = "F"
    NIL = "N"
    INFINITUM = "I"
    INT32 = "i"
    FLOAT = "f"
    CHAR = "c"
    RGBA_COLOR = "r"
    MIDI_MESSAGE = "m"
    INT64 = "h"
    TIME_TAG = "t"
    DOUBLE = "d"
    STRING = "s"
    SYMBOL = "S"
    BLOB = "b"
    ARRAY_BEGIN = "["
    ARRAY_END = "]"


def _check_range(name: str, value: int, low: int, high: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} value must be an int")
    if not low <= value <= high:
        raise ValueError(f"{name} value {value} out of range")


@dataclass(frozen=True)
class BundleInitiator:
    """Opens a bundle carrying ``time_tag``."""

    time_tag: int = 1

    def __post_init__(self) -> None:
        _check_range("time tag", self.time_tag, 0, _UINT64_MAX)


def begin_bundle(time_tag: int = 1) -> BundleInitiator:
    """Return a marker that opens a bundle with the given time tag."""
    return BundleInitiator(time_tag)


@dataclass(frozen=True)
class BundleTerminator:
    """Closes the innermost open bundle."""


@dataclass(frozen=True)
class BeginMessage:
    """Opens a message with the given address pattern."""

    address_pattern: str


@dataclass(frozen=True)
class MessageTerminator:
    """Closes the open message."""


@dataclass(frozen=True)
class NilType:
    """The OSC nil value."""


@dataclass(frozen=True)
class InfinitumType:
    """The OSC infinitum value."""


@dataclass(frozen=True)
class ArrayInitiator:
    """Opens an argument array."""


@dataclass(frozen=True)
class ArrayTerminator:
    """Closes an argument array."""


@dataclass(frozen=True)
class RgbaColor:
    """A 32-bit RGBA colour value."""

    value: int

    def __post_init__(self) -> None:
        _check_range("RGBA colour", self.value, 0, _UINT32_MAX)

    def __int__(self) -> int:
        return self.value


@dataclass(frozen=True)
class MidiMessage:
    """A 4-byte MIDI message: port, status, data1, data2."""

    value: int

    def __post_init__(self) -> None:
        _check_range("MIDI message", self.value, 0, _UINT32_MAX)

    def __int__(self) -> int:
        return self.value


@dataclass(frozen=True)
class TimeTag:
    """A 64-bit OSC time tag."""

    value: int

    def __post_init__(self) -> None:
        _check_range("time tag", self.value, 0, _UINT64_MAX)

    def __int__(self) -> int:
        return self.value


@dataclass(frozen=True)
class Symbol:
    """An OSC symbol: a string sent with the 'S' type tag."""

    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Blob:
    """Opaque binary data."""

    data: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", bytes(self.data))
        if not is_valid_element_size(len(self.data)):
            raise ValueError("blob too large")

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class Int64:
    """A 64-bit signed integer argument."""

    value: int

    def __post_init__(self) -> None:
        _check_range("int64", self.value, _INT64_MIN, _INT64_MAX)

    def __int__(self) -> int:
        return self.value


@dataclass(frozen=True)
class Float32:
    """A 32-bit float argument; plain floats are sent as doubles."""

    value: float

    def __float__(self) -> float:
        return float(self.value)


@dataclass(frozen=True)
class Char:
    """A single-character argument."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or len(self.value) != 1:
            raise ValueError("char value must be a single character")
        if ord(self.value) > 0xFF:
            raise ValueError("char value must fit in one byte")

    def __str__(self) -> str:
        return self.value


BEGIN_BUNDLE_IMMEDIATE = BundleInitiator(1)
END_BUNDLE = BundleTerminator()
END_MESSAGE = MessageTerminator()
OSC_NIL = NilType()
NIL = OSC_NIL
INFINITUM = InfinitumType()
BEGIN_ARRAY = ArrayInitiator()
END_ARRAY = ArrayTerminator()