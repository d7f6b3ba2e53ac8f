"""Typed access to the arguments of a received OSC message."""

from __future__ import annotations

import struct
from collections.abc import Iterator

from .errors import MalformedMessageError, MissingArgumentError, WrongArgumentTypeError
from .types import OSC_SIZEOF_INT32, TypeTag, is_valid_element_size, round_up_4

_ZERO_LENGTH_TAGS = frozenset(
    {
        TypeTag.TRUE.value,
        TypeTag.FALSE.value,
        TypeTag.NIL.value,
        TypeTag.INFINITUM.value,
        TypeTag.ARRAY_BEGIN.value,
        TypeTag.ARRAY_END.value,
    }
)
_FOUR_BYTE_TAGS = frozenset(
    {
        TypeTag.INT32.value,
        TypeTag.FLOAT.value,
        TypeTag.CHAR.value,
        TypeTag.RGBA_COLOR.value,
        TypeTag.MIDI_MESSAGE.value,
    }
)
_EIGHT_BYTE_TAGS = frozenset(
    {TypeTag.INT64.value, TypeTag.TIME_TAG.value, TypeTag.DOUBLE.value}
)
_STRING_TAGS = frozenset({TypeTag.STRING.value, TypeTag.SYMBOL.value})


def _string_end(data: bytes, offset: int) -> int:
    """Return the first 4-byte boundary after the NUL-terminated string at ``offset``."""
    nul = data.find(b"\0", offset)
    if nul < 0:
        raise MalformedMessageError("unterminated string argument")
    return offset + round_up_4(nul - offset + 1)


class ReceivedMessageArgument:
    """One argument of a received message: its type tag and its data.

    ``type_tags`` is the message's type tag string without the leading
    comma (or None when the message has no type tags), ``tag_index`` the
    position of this argument's tag in it, ``data`` the message bytes and
    ``offset`` where this argument's data starts.
    """

    __slots__ = ("_type_tags", "_tag_index", "_data", "_offset")

    def __init__(
        self, type_tags: str | None, tag_index: int, data: bytes, offset: int
    ) -> None:
        self._type_tags = type_tags
        self._tag_index = tag_index
        self._data = bytes(data)
        self._offset = offset

    def __repr__(self) -> str:
        tags = self._type_tags or ""
        tag = tags[self._tag_index] if self._tag_index < len(tags) else ""
        return f"ReceivedMessageArgument(tag={tag!r}, offset={self._offset})"

    @property
    def offset(self) -> int:
        """Offset of this argument's data within the message bytes."""
        return self._offset

    # -- helpers -------------------------------------------------------------

    def _tag(self) -> str:
        tags = self._type_tags
        if not tags or self._tag_index >= len(tags):
            raise MissingArgumentError()
        return tags[self._tag_index]

    def _checked(self, tag: TypeTag) -> None:
        if self._tag() != tag.value:
            raise WrongArgumentTypeError()

    def _unpack(self, fmt: str) -> object:
        try:
            return struct.unpack_from(fmt, self._data, self._offset)[0]
        except struct.error as exc:
            raise MalformedMessageError("arguments exceed message size") from exc

    def _cstring(self) -> str:
        nul = self._data.find(b"\0", self._offset)
        if nul < 0:
            raise MalformedMessageError("unterminated string argument")
        return self._data[self._offset:nul].decode("utf-8", errors="replace")

    # -- type tag ------------------------------------------------------------

    def type_tag(self) -> str:
        """Return this argument's type tag character."""
        return self._tag()

    # -- bool ----------------------------------------------------------------

    def is_bool(self) -> bool:
        return self._tag() in (TypeTag.TRUE.value, TypeTag.FALSE.value)

    def as_bool(self) -> bool:
        tag = self._tag()
        if tag == TypeTag.TRUE.value:
            return True
        if tag == TypeTag.FALSE.value:
            return False
        raise WrongArgumentTypeError()

    def as_bool_unchecked(self) -> bool:
        return self._tag() == TypeTag.TRUE.value

    # -- zero-length values ----------------------------------------------------

    def is_nil(self) -> bool:
        return self._tag() == TypeTag.NIL.value

    def is_infinitum(self) -> bool:
        return self._tag() == TypeTag.INFINITUM.value

    # -- int32 ---------------------------------------------------------------

    def is_int32(self) -> bool:
        return self._tag() == TypeTag.INT32.value

    def as_int32(self) -> int:
        self._checked(TypeTag.INT32)
        return self.as_int32_unchecked()

    def as_int32_unchecked(self) -> int:
        return self._unpack(">i")

    # -- float ---------------------------------------------------------------

    def is_float(self) -> bool:
        return self._tag() == TypeTag.FLOAT.value

    def as_float(self) -> float:
        self._checked(TypeTag.FLOAT)
        return self.as_float_unchecked()

    def as_float_unchecked(self) -> float:
        return self._unpack(">f")

    # -- char ----------------------------------------------------------------

    def is_char(self) -> bool:
        return self._tag() == TypeTag.CHAR.value

    def as_char(self) -> str:
        self._checked(TypeTag.CHAR)
        return self.as_char_unchecked()

    def as_char_unchecked(self) -> str:
        return chr(self._unpack(">i") & 0xFF)

    # -- rgba colour -----------------------------------------------------------

    def is_rgba_color(self) -> bool:
        return self._tag() == TypeTag.RGBA_COLOR.value

    def as_rgba_color(self) -> int:
        self._checked(TypeTag.RGBA_COLOR)
        return self.as_rgba_color_unchecked()

    def as_rgba_color_unchecked(self) -> int:
        return self._unpack(">I")

    # -- midi message ----------------------------------------------------------

    def is_midi_message(self) -> bool:
        return self._tag() == TypeTag.MIDI_MESSAGE.value

    def as_midi_message(self) -> int:
        self._checked(TypeTag.MIDI_MESSAGE)
        return self.as_midi_message_unchecked()

    def as_midi_message_unchecked(self) -> int:
        return self._unpack(">I")

    # -- int64 ---------------------------------------------------------------

    def is_int64(self) -> bool:
        return self._tag() == TypeTag.INT64.value

    def as_int64(self) -> int:
        self._checked(TypeTag.INT64)
        return self.as_int64_unchecked()

    def as_int64_unchecked(self) -> int:
        return self._unpack(">q")

    # -- time tag --------------------------------------------------------------

    def is_time_tag(self) -> bool:
        return self._tag() == TypeTag.TIME_TAG.value

    def as_time_tag(self) -> int:
        self._checked(TypeTag.TIME_TAG)
        return self.as_time_tag_unchecked()

    def as_time_tag_unchecked(self) -> int:
        return self._unpack(">Q")

    # -- double ----------------------------------------------------------------

    def is_double(self) -> bool:
        return self._tag() == TypeTag.DOUBLE.value

    def as_double(self) -> float:
        self._checked(TypeTag.DOUBLE)
        return self.as_double_unchecked()

    def as_double_unchecked(self) -> float:
        return self._unpack(">d")

    # -- string ----------------------------------------------------------------

    def is_string(self) -> bool:
        return self._tag() == TypeTag.STRING.value

    def as_string(self) -> str:
        self._checked(TypeTag.STRING)
        return self.as_string_unchecked()

    def as_string_unchecked(self) -> str:
        return self._cstring()

    # -- symbol ----------------------------------------------------------------

    def is_symbol(self) -> bool:
        return self._tag() == TypeTag.SYMBOL.value

    def as_symbol(self) -> str:
        self._checked(TypeTag.SYMBOL)
        return self.as_symbol_unchecked()

    def as_symbol_unchecked(self) -> str:
        return self._cstring()

    # -- blob ----------------------------------------------------------------

    def is_blob(self) -> bool:
        return self._tag() == TypeTag.BLOB.value

    def as_blob(self) -> bytes:
        self._checked(TypeTag.BLOB)
        return self.as_blob_unchecked()

    def as_blob_unchecked(self) -> bytes:
        size = self._unpack(">I")
        if not is_valid_element_size(size):
            raise MalformedMessageError("invalid blob size")
        start = self._offset + OSC_SIZEOF_INT32
        if start + size > len(self._data):
            raise MalformedMessageError("arguments exceed message size")
        return self._data[start:start + size]

    # -- arrays ----------------------------------------------------------------

    def is_array_begin(self) -> bool:
        return self._tag() == TypeTag.ARRAY_BEGIN.value

    def is_array_end(self) -> bool:
        return self._tag() == TypeTag.ARRAY_END.value

    def compute_array_item_count(self) -> int:
        """Count the items of the array that starts at this argument.

        Only items directly inside the array are counted.
        """
        if not self.is_array_begin():
            raise WrongArgumentTypeError()
        result = 0
        level = 0
        for tag in self._type_tags[self._tag_index + 1:]:
            if tag == TypeTag.ARRAY_BEGIN.value:
                level += 1
            elif tag == TypeTag.ARRAY_END.value:
                if level == 0:
                    return result
                level -= 1
            elif level == 0:
                result += 1
        return result


def iter_arguments(
    type_tags: str | None, data: bytes, offset: int
) -> Iterator[ReceivedMessageArgument]:
    """Yield each argument described by ``type_tags`` whose data starts at ``offset``."""
    if not type_tags:
        return
    data = bytes(data)
    for index, tag in enumerate(type_tags):
        argument = ReceivedMessageArgument(type_tags, index, data, offset)
        yield argument
        if tag in _ZERO_LENGTH_TAGS:
            continue
        if tag in _FOUR_BYTE_TAGS:
            offset += 4
        elif tag in _EIGHT_BYTE_TAGS:
            offset += 8
        elif tag in _STRING_TAGS:
            offset = _string_end(data, offset)
        elif tag == TypeTag.BLOB.value:
            try:
                (blob_size,) = struct.unpack_from(">I", data, offset)
            except struct.error as exc:
                raise MalformedMessageError("arguments exceed message size") from exc
            offset += OSC_SIZEOF_INT32 + round_up_4(blob_size)
        else:
            raise MalformedMessageError("unknown type tag")