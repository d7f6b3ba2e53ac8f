"""Building OSC packets (messages and bundles) into a bounded buffer."""

from __future__ import annotations

import functools
import struct

from .errors import (
    BundleNotInProgressError,
    MessageInProgressError,
    MessageNotInProgressError,
    OutOfBufferMemoryError,
)
from .types import (
    ArrayInitiator,
    ArrayTerminator,
    BeginMessage,
    Blob,
    BundleInitiator,
    BundleTerminator,
    Char,
    Float32,
    InfinitumType,
    Int64,
    MessageTerminator,
    MidiMessage,
    NilType,
    RgbaColor,
    Symbol,
    TimeTag,
    TypeTag,
    round_up_4,
)

_INT32_MIN = -(1 << 31)
_INT32_MAX = (1 << 31) - 1


def _osc_string(value: str | bytes) -> bytes:
    """Encode a string NUL-terminated and zero padded to a 4-byte boundary."""
    raw = value.encode("utf-8") if isinstance(value, str) else bytes(value)
    # Like a C string, the value ends at its first NUL.
    raw = raw.split(b"\0", 1)[0]
    return raw + b"\0" * (round_up_4(len(raw) + 1) - len(raw))


class OutboundPacketStream:
    """Accumulates an OSC packet, refusing to grow beyond ``capacity`` bytes.

    Items are added with :meth:`write` or the ``<<`` operator, which both
    return the stream so that calls can be chained.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            raise ValueError("capacity must not be negative")
        self._capacity = capacity
        self.clear()

    # -- state -------------------------------------------------------------

    def clear(self) -> None:
        """Discard everything written so far."""
        self._buf = bytearray()
        self._message_cursor = 0
        self._type_tags: list[str] = []
        # One entry per open element: None for the outermost element, which
        # has no size slot, otherwise the offset of the element's size slot.
        self._element_slots: list[int | None] = []
        self._message_in_progress = False

    def capacity(self) -> int:
        """Return the maximum packet size in bytes."""
        return self._capacity

    def size(self) -> int:
        """Return the packet size, valid even while a message is being built."""
        result = len(self._buf)
        if self._message_in_progress:
            # A comma, the tags and at least one terminating NUL.
            result += round_up_4(len(self._type_tags) + 2)
        return result

    def data(self) -> bytes:
        """Return the packet bytes; complete only when :meth:`is_ready`."""
        return bytes(self._buf)

    def is_ready(self) -> bool:
        """Return True when every message and bundle has been closed."""
        return not self.is_message_in_progress() and not self.is_bundle_in_progress()

    def is_message_in_progress(self) -> bool:
        return self._message_in_progress

    def is_bundle_in_progress(self) -> bool:
        return bool(self._element_slots)

    # -- element bookkeeping -------------------------------------------------

    def _begin_element(self) -> None:
        del self._buf[self._message_cursor:]
        if not self._element_slots:
            self._element_slots.append(None)
        else:
            self._element_slots.append(self._message_cursor)
            self._buf += b"\0\0\0\0"
            self._message_cursor += 4

    def _end_element(self) -> None:
        slot = self._element_slots.pop()
        if slot is not None:
            element_size = self._message_cursor - slot - 4
            struct.pack_into(">I", self._buf, slot, element_size)

    def _slot_size(self) -> int:
        return 4 if self._element_slots else 0

    def _check_bundle_space(self) -> None:
        if self.size() + self._slot_size() + 16 > self._capacity:
            raise OutOfBufferMemoryError()

    def _check_message_space(self, encoded_address: bytes) -> None:
        # Plus four for at least four bytes of type tag.
        required = self.size() + self._slot_size() + len(encoded_address) + 4
        if required > self._capacity:
            raise OutOfBufferMemoryError()

    def _check_argument_space(self, argument_length: int) -> None:
        # Plus three for the new type tag, the comma and the terminator.
        required = (
            len(self._buf)
            + argument_length
            + round_up_4(len(self._type_tags) + 3)
        )
        if required > self._capacity:
            raise OutOfBufferMemoryError()

    def _append_argument(self, tag: TypeTag, payload: bytes = b"") -> OutboundPacketStream:
        self._check_argument_space(len(payload))
        self._type_tags.append(tag.value)
        self._buf += payload
        return self

    # -- writing -------------------------------------------------------------

    def __lshift__(self, item: object) -> OutboundPacketStream:
        return self.write(item)

    @functools.singledispatchmethod
    def write(self, item: object) -> OutboundPacketStream:
        """Append a marker or argument value to the packet."""
        raise TypeError(f"cannot write value of type {type(item).__name__}")

    @write.register(BundleInitiator)
    def _write_bundle_initiator(self, item: BundleInitiator) -> OutboundPacketStream:
        if self._message_in_progress:
            raise MessageInProgressError()
        self._check_bundle_space()
        self._begin_element()
        self._buf += b"#bundle\0" + struct.pack(">Q", item.time_tag)
        self._message_cursor = len(self._buf)
        return self

    @write.register(BundleTerminator)
    def _write_bundle_terminator(self, item: BundleTerminator) -> OutboundPacketStream:
        if not self.is_bundle_in_progress():
            raise BundleNotInProgressError()
        if self._message_in_progress:
            raise MessageInProgressError()
        self._end_element()
        return self

    @write.register(BeginMessage)
    def _write_begin_message(self, item: BeginMessage) -> OutboundPacketStream:
        if self._message_in_progress:
            raise MessageInProgressError()
        address = _osc_string(item.address_pattern)
        self._check_message_space(address)
        self._begin_element()
        self._buf += address
        self._message_cursor = len(self._buf)
        self._type_tags = []
        self._message_in_progress = True
        return self

    @write.register(MessageTerminator)
    def _write_message_terminator(self, item: MessageTerminator) -> OutboundPacketStream:
        if not self._message_in_progress:
            raise MessageNotInProgressError()
        tags = "".join(self._type_tags).encode("latin-1")
        slot_size = round_up_4(len(tags) + 2)
        block = b"," + tags
        block += b"\0" * (slot_size - len(block))
        self._buf[self._message_cursor:self._message_cursor] = block
        self._type_tags = []
        self._message_cursor = len(self._buf)
        self._end_element()
        self._message_in_progress = False
        return self

    @write.register(bool)
    def _write_bool(self, item: bool) -> OutboundPacketStream:
        return self._append_argument(TypeTag.TRUE if item else TypeTag.FALSE)

    @write.register(NilType)
    def _write_nil(self, item: NilType) -> OutboundPacketStream:
        return self._append_argument(TypeTag.NIL)

    @write.register(InfinitumType)
    def _write_infinitum(self, item: InfinitumType) -> OutboundPacketStream:
        return self._append_argument(TypeTag.INFINITUM)

    @write.register(int)
    def _write_int32(self, item: int) -> OutboundPacketStream:
        if not _INT32_MIN <= item <= _INT32_MAX:
            raise OverflowError(f"{item} does not fit in int32; use Int64")
        return self._append_argument(TypeTag.INT32, struct.pack(">i", item))

    @write.register(Float32)
    def _write_float32(self, item: Float32) -> OutboundPacketStream:
        return self._append_argument(TypeTag.FLOAT, struct.pack(">f", float(item)))

    @write.register(Char)
    def _write_char(self, item: Char) -> OutboundPacketStream:
        code = ord(item.value)
        if code > 0x7F:
            code -= 0x100
        return self._append_argument(TypeTag.CHAR, struct.pack(">i", code))

    @write.register(RgbaColor)
    def _write_rgba(self, item: RgbaColor) -> OutboundPacketStream:
        return self._append_argument(TypeTag.RGBA_COLOR, struct.pack(">I", item.value))

    @write.register(MidiMessage)
    def _write_midi(self, item: MidiMessage) -> OutboundPacketStream:
        return self._append_argument(TypeTag.MIDI_MESSAGE, struct.pack(">I", item.value))

    @write.register(Int64)
    def _write_int64(self, item: Int64) -> OutboundPacketStream:
        return self._append_argument(TypeTag.INT64, struct.pack(">q", item.value))

    @write.register(TimeTag)
    def _write_time_tag(self, item: TimeTag) -> OutboundPacketStream:
        return self._append_argument(TypeTag.TIME_TAG, struct.pack(">Q", item.value))

    @write.register(float)
    def _write_double(self, item: float) -> OutboundPacketStream:
        return self._append_argument(TypeTag.DOUBLE, struct.pack(">d", item))

    @write.register(str)
    def _write_string(self, item: str) -> OutboundPacketStream:
        return self._append_argument(TypeTag.STRING, _osc_string(item))

    @write.register(Symbol)
    def _write_symbol(self, item: Symbol) -> OutboundPacketStream:
        return self._append_argument(TypeTag.SYMBOL, _osc_string(item.value))

    @write.register(Blob)
    def _write_blob(self, item: Blob) -> OutboundPacketStream:
        padding = b"\0" * (round_up_4(item.size) - item.size)
        payload = struct.pack(">I", item.size) + item.data + padding
        return self._append_argument(TypeTag.BLOB, payload)

    @write.register(bytes)
    @write.register(bytearray)
    def _write_bytes(self, item: bytes) -> OutboundPacketStream:
        return self._write_blob(Blob(item))

    @write.register(ArrayInitiator)
    def _write_array_begin(self, item: ArrayInitiator) -> OutboundPacketStream:
        return self._append_argument(TypeTag.ARRAY_BEGIN)

    @write.register(ArrayTerminator)
    def _write_array_end(self, item: ArrayTerminator) -> OutboundPacketStream:
        return self._append_argument(TypeTag.ARRAY_END)