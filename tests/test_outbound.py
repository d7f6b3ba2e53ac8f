import struct

import pytest

from oscpacket.errors import (
    BundleNotInProgressError,
    MessageInProgressError,
    MessageNotInProgressError,
    OutOfBufferMemoryError,
)
from oscpacket.outbound import OutboundPacketStream
from oscpacket.types import (
    BEGIN_ARRAY,
    BEGIN_BUNDLE_IMMEDIATE,
    END_ARRAY,
    END_BUNDLE,
    END_MESSAGE,
    INFINITUM,
    OSC_NIL,
    BeginMessage,
    Blob,
    Char,
    Float32,
    Int64,
    MidiMessage,
    RgbaColor,
    Symbol,
    TimeTag,
    begin_bundle,
)


def _type_tags(data: bytes, start: int) -> str:
    end = data.index(b"\0", start)
    return data[start:end].decode()


def test_empty_message_wire_bytes():
    s = OutboundPacketStream(64)
    s << BeginMessage("/a") << END_MESSAGE
    assert s.data() == b"/a\0\0,\0\0\0"
    assert s.size() == len(s.data())


def test_int32_message_wire_bytes():
    s = OutboundPacketStream(64)
    s << BeginMessage("/test") << 1 << END_MESSAGE
    assert s.data() == b"/test\0\0\0,i\0\0" + struct.pack(">i", 1)


def test_exact_capacity_fits_and_one_less_fails():
    s = OutboundPacketStream(8)
    s << BeginMessage("/a") << END_MESSAGE
    assert s.size() == s.capacity()
    t = OutboundPacketStream(7)
    with pytest.raises(OutOfBufferMemoryError):
        t << BeginMessage("/a")


def test_size_while_building_matches_final_size():
    s = OutboundPacketStream(256)
    s << BeginMessage("/x") << 7 << "hello" << 2.5
    in_progress = s.size()
    s << END_MESSAGE
    assert s.size() == in_progress
    assert len(s.data()) == in_progress


def test_all_argument_types_encode_and_tags_in_order():
    s = OutboundPacketStream(1024)
    (
        s << BeginMessage("/all")
        << True << False << OSC_NIL << INFINITUM
        << 42 << Float32(1.5) << Char("A") << RgbaColor(0x11223344)
        << MidiMessage(0x01020304) << Int64(-5) << TimeTag(99) << 0.25
        << "str" << Symbol("sym") << Blob(b"\x01\x02\x03")
        << BEGIN_ARRAY << 3 << END_ARRAY
        << END_MESSAGE
    )
    data = s.data()
    assert data[:8] == b"/all\0\0\0\0"
    assert _type_tags(data, 8) == ",TFNIifcrmhtdsSb[i]"
    assert len(data) % 4 == 0

    tags_len = len(",TFNIifcrmhtdsSb[i]") + 1
    off = 8 + ((tags_len + 3) & ~3)
    assert struct.unpack_from(">i", data, off)[0] == 42
    off += 4
    assert struct.unpack_from(">f", data, off)[0] == 1.5
    off += 4
    assert struct.unpack_from(">i", data, off)[0] == ord("A")
    off += 4
    assert struct.unpack_from(">I", data, off)[0] == 0x11223344
    off += 4
    assert struct.unpack_from(">I", data, off)[0] == 0x01020304
    off += 4
    assert struct.unpack_from(">q", data, off)[0] == -5
    off += 8
    assert struct.unpack_from(">Q", data, off)[0] == 99
    off += 8
    assert struct.unpack_from(">d", data, off)[0] == 0.25
    off += 8
    assert data[off:off + 4] == b"str\0"
    off += 4
    assert data[off:off + 4] == b"sym\0"
    off += 4
    assert struct.unpack_from(">I", data, off)[0] == 3
    assert data[off + 4:off + 8] == b"\x01\x02\x03\0"
    off += 8
    assert struct.unpack_from(">i", data, off)[0] == 3
    assert off + 4 == len(data)


def test_high_char_is_sign_extended():
    s = OutboundPacketStream(64)
    s << BeginMessage("/c") << Char("\xff") << END_MESSAGE
    assert struct.unpack_from(">i", s.data(), 8)[0] == -1


def test_bytes_written_as_blob():
    a = OutboundPacketStream(64)
    a << BeginMessage("/b") << b"\x09\x08" << END_MESSAGE
    b = OutboundPacketStream(64)
    b << BeginMessage("/b") << Blob(b"\x09\x08") << END_MESSAGE
    assert a.data() == b.data()


def test_string_padding_when_length_multiple_of_four():
    s = OutboundPacketStream(64)
    s << BeginMessage("/s") << "abcd" << END_MESSAGE
    data = s.data()
    assert data.endswith(b"abcd\0\0\0\0")


def test_bundle_header_and_element_size():
    s = OutboundPacketStream(128)
    s << begin_bundle(5) << BeginMessage("/a") << 1 << END_MESSAGE << END_BUNDLE
    data = s.data()
    assert data[:8] == b"#bundle\0"
    assert struct.unpack_from(">Q", data, 8)[0] == 5
    assert struct.unpack_from(">I", data, 16)[0] == len(data) - 20
    assert s.is_ready()


def test_nested_bundle_sizes():
    s = OutboundPacketStream(256)
    (
        s << BEGIN_BUNDLE_IMMEDIATE
        << begin_bundle(7) << BeginMessage("/in") << 2 << END_MESSAGE << END_BUNDLE
        << BeginMessage("/out") << END_MESSAGE
        << END_BUNDLE
    )
    data = s.data()
    assert struct.unpack_from(">Q", data, 8)[0] == 1
    inner_size = struct.unpack_from(">I", data, 16)[0]
    inner = data[20:20 + inner_size]
    assert inner[:8] == b"#bundle\0"
    assert struct.unpack_from(">Q", inner, 8)[0] == 7
    msg_size = struct.unpack_from(">I", inner, 16)[0]
    assert 20 + msg_size == len(inner)
    second = 20 + inner_size
    second_size = struct.unpack_from(">I", data, second)[0]
    assert second + 4 + second_size == len(data)
    assert data[second + 4:second + 9] == b"/out\0"


def test_state_flags():
    s = OutboundPacketStream(128)
    assert s.is_ready()
    s << begin_bundle()
    assert s.is_bundle_in_progress() and not s.is_ready()
    s << BeginMessage("/m")
    assert s.is_message_in_progress()
    s << END_MESSAGE
    assert not s.is_message_in_progress()
    assert s.is_bundle_in_progress()
    s << END_BUNDLE
    assert s.is_ready()


def test_clear_resets():
    s = OutboundPacketStream(64)
    s << begin_bundle() << BeginMessage("/m")
    s.clear()
    assert s.size() == 0
    assert s.data() == b""
    assert s.is_ready()


def test_write_returns_stream_for_chaining():
    s = OutboundPacketStream(64)
    assert s.write(BeginMessage("/w")) is s
    assert (s << 1) is s


def test_end_message_without_begin():
    s = OutboundPacketStream(64)
    with pytest.raises(MessageNotInProgressError) as info:
        s << END_MESSAGE
    assert str(info.value) == "call to EndMessage when message is not in progress"
    assert s.is_ready()


def test_end_bundle_without_begin():
    s = OutboundPacketStream(64)
    with pytest.raises(BundleNotInProgressError) as info:
        s << END_BUNDLE
    assert str(info.value) == "call to EndBundle when bundle is not in progress"
    assert s.is_ready()


def test_bundle_or_message_while_message_in_progress():
    s = OutboundPacketStream(128)
    s << begin_bundle() << BeginMessage("/m")
    with pytest.raises(MessageInProgressError):
        s << begin_bundle()
    with pytest.raises(MessageInProgressError):
        s << BeginMessage("/n")
    with pytest.raises(MessageInProgressError):
        s << END_BUNDLE


def test_argument_overflow_raises():
    s = OutboundPacketStream(12)
    s << BeginMessage("/a") << 1
    with pytest.raises(OutOfBufferMemoryError) as info:
        s << 2
    assert str(info.value) == "out of buffer memory"
    assert s.size() == 12


def test_bundle_overflow_raises():
    s = OutboundPacketStream(15)
    with pytest.raises(OutOfBufferMemoryError):
        s << begin_bundle()


def test_unsupported_type_raises():
    s = OutboundPacketStream(64)
    s << BeginMessage("/a")
    with pytest.raises(TypeError):
        s << object()
    assert s.is_message_in_progress()


def test_int_out_of_int32_range_raises():
    s = OutboundPacketStream(64)
    s << BeginMessage("/a")
    with pytest.raises(OverflowError):
        s << (1 << 31)
    with pytest.raises(OverflowError):
        s << -(1 << 31) - 1
    assert s.is_message_in_progress()


def test_empty_array_encodes_brackets():
    s = OutboundPacketStream(64)
    s << BeginMessage("/arr") << BEGIN_ARRAY << END_ARRAY << END_MESSAGE
    assert _type_tags(s.data(), 8) == ",[]"