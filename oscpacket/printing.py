"""Human-readable rendering of received OSC packets, messages and arguments."""

from __future__ import annotations

import time
from collections.abc import Callable

from .argument import ReceivedMessageArgument
from .received import ReceivedBundle, ReceivedMessage, ReceivedPacket
from .types import TypeTag

_INDENT = "  "


def _hex_bytes(value: int) -> list[str]:
    return [f"{(value >> shift) & 0xFF:02x}" for shift in (24, 16, 8, 0)]


def _format_time_tag(arg: ReceivedMessageArgument) -> str:
    value = arg.as_time_tag_unchecked()
    text = f"OSC-timetag:{value} "
    # ctime() output carries no trailing newline in Python.
    return text + time.ctime(value >> 32)


def _format_rgba(arg: ReceivedMessageArgument) -> str:
    return "RGBA:0x" + "".join(_hex_bytes(arg.as_rgba_color_unchecked()))


def _format_midi(arg: ReceivedMessageArgument) -> str:
    parts = " ".join("0x" + h for h in _hex_bytes(arg.as_midi_message_unchecked()))
    return f"midi (port, status, data1, data2):<<{parts}>>"


def _format_char(arg: ReceivedMessageArgument) -> str:
    char = arg.as_char_unchecked()
    # A NUL character prints as an empty C string.
    return "char:'" + ("" if char == "\0" else char) + "'"


def _format_blob(arg: ReceivedMessageArgument) -> str:
    data = arg.as_blob_unchecked()
    return "OSC-blob:<<" + " ".join(f"0x{b:02x}" for b in data) + ">>"


_FORMATTERS: dict[TypeTag, Callable[[ReceivedMessageArgument], str]] = {
    TypeTag.TRUE: lambda arg: "bool:true",
    TypeTag.FALSE: lambda arg: "bool:false",
    TypeTag.NIL: lambda arg: "(Nil)",
    TypeTag.INFINITUM: lambda arg: "(Infinitum)",
    TypeTag.INT32: lambda arg: f"int32:{arg.as_int32_unchecked()}",
    TypeTag.FLOAT: lambda arg: f"float32:{arg.as_float_unchecked():g}",
    TypeTag.CHAR: _format_char,
    TypeTag.RGBA_COLOR: _format_rgba,
    TypeTag.MIDI_MESSAGE: _format_midi,
    TypeTag.INT64: lambda arg: f"int64:{arg.as_int64_unchecked()}",
    TypeTag.TIME_TAG: _format_time_tag,
    TypeTag.DOUBLE: lambda arg: f"double:{arg.as_double_unchecked():g}",
    TypeTag.STRING: lambda arg: f"OSC-string:`{arg.as_string_unchecked()}'",
    TypeTag.SYMBOL: lambda arg: f"OSC-string (symbol):`{arg.as_symbol_unchecked()}'",
    TypeTag.BLOB: _format_blob,
    TypeTag.ARRAY_BEGIN: lambda arg: "[",
    TypeTag.ARRAY_END: lambda arg: "]",
}


def format_argument(arg: ReceivedMessageArgument) -> str:
    """Render one message argument with its type."""
    try:
        tag = TypeTag(arg.type_tag())
    except ValueError:
        return "unknown"
    return _FORMATTERS[tag](arg)


def format_message(message: ReceivedMessage) -> str:
    """Render a message as ``[address arg, arg, ...]``."""
    if message.address_pattern_is_uint32():
        address = str(message.address_pattern_as_uint32())
    else:
        address = message.address_pattern()
    arguments = ", ".join(format_argument(arg) for arg in message)
    if arguments:
        return f"[{address} {arguments}]"
    return f"[{address}]"


def format_bundle(bundle: ReceivedBundle, indent: int = 0) -> str:
    """Render a bundle and its elements, nested ``indent`` levels deep."""
    time_tag = bundle.time_tag()
    when = "immediate" if time_tag == 1 else str(time_tag)
    lines = [f"{_INDENT * indent}{{ ( {when} )\n"]
    for element in bundle:
        if element.is_bundle():
            lines.append(format_bundle(ReceivedBundle(element), indent + 1) + "\n")
        else:
            message = format_message(ReceivedMessage(element))
            lines.append(f"{_INDENT * (indent + 1)}{message}\n")
    lines.append(f"{_INDENT * indent}}}")
    return "".join(lines)


def format_packet(packet: ReceivedPacket) -> str:
    """Render a whole packet followed by a newline."""
    if packet.is_bundle():
        return format_bundle(ReceivedBundle(packet)) + "\n"
    return format_message(ReceivedMessage(packet)) + "\n"