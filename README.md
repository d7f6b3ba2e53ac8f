# oscpacket

Pure-Python building, parsing and printing of Open Sound Control (OSC)
packets. It handles messages, nested bundles and the argument types
`i f s S b h t d c r m T F N I [ ]`. It has no dependencies outside the
standard library.

## Install

```
pip install oscpacket
```

## Building packets

`oscpacket.outbound.OutboundPacketStream(capacity)` builds one packet. Items
are appended with `write()` or with `<<`, and both return the stream so that
calls can be chained. Once a packet would grow beyond `capacity` bytes, the
stream raises `OutOfBufferMemoryError`.

```python
from oscpacket.outbound import OutboundPacketStream
from oscpacket.types import (
    BeginMessage, MessageTerminator, BundleTerminator, begin_bundle, Symbol, Blob,
)

stream = OutboundPacketStream(1024)
(stream
    << begin_bundle(1)
    << BeginMessage("/synth/freq") << 440 << 0.5 << "sine" << MessageTerminator()
    << BeginMessage("/synth/tag") << Symbol("lead") << Blob(b"\x01\x02") << MessageTerminator()
    << BundleTerminator())

assert stream.is_ready()
packet_bytes = stream.data()
```

### How Python values are written

- `int`: int32. A value outside the int32 range raises `OverflowError`.
- `float`: a 64-bit double.
- `bool`: `T` or `F`.
- `str`: an OSC string. The string ends at its first NUL character.
- `bytes` and `bytearray`: a blob.

The wrappers in `oscpacket.types` cover the other tags:

| Wrapper | Tag |
| --- | --- |
| `Int64` | `h` |
| `Float32` | `f` |
| `Char` | `c` |
| `RgbaColor` | `r` |
| `MidiMessage` | `m` |
| `TimeTag` | `t` |
| `Symbol` | `S` |
| `Blob` | `b` |
| `NilType` | `N` |
| `InfinitumType` | `I` |
| `ArrayInitiator` | `[` |
| `ArrayTerminator` | `]` |

Any other type raises `TypeError`.

### Markers and stream state

`oscpacket.types` also provides ready-made markers:

- `BEGIN_BUNDLE_IMMEDIATE`
- `END_BUNDLE`
- `END_MESSAGE`
- `OSC_NIL` (also `NIL`)
- `INFINITUM`
- `BEGIN_ARRAY`
- `END_ARRAY`

These stream methods report its state:

- `size()` is valid even while a message is open.
- `capacity()` returns the capacity given to the constructor.
- `is_message_in_progress()` and `is_bundle_in_progress()` report what is still open.
- `is_ready()` is true once everything opened has been closed.
- `clear()` starts the packet over.

Misuse of the markers raises an error:

- `MessageInProgressError` when a bundle or message is opened, or a bundle closed, while a message is open.
- `MessageNotInProgressError` when a message is closed with none open.
- `BundleNotInProgressError` when a bundle is closed with none open.

## Reading packets

```python
from oscpacket.received import ReceivedPacket, ReceivedMessage, ReceivedBundle

packet = ReceivedPacket(packet_bytes)
if packet.is_bundle():
    bundle = ReceivedBundle(packet)
    print(bundle.time_tag(), bundle.element_count())
    for element in bundle:
        if element.is_message():
            message = ReceivedMessage(element)
            print(message.address_pattern(), message.type_tags())
            for arg in message:
                if arg.is_int32():
                    print(arg.as_int32())
```

### Messages

`ReceivedMessage` and `ReceivedBundle` validate their input when they are
constructed.

- Iterating a message yields `oscpacket.argument.ReceivedMessageArgument` objects.
- Each argument has `type_tag()`, `is_<type>()` checks, checked `as_<type>()` readers and `as_<type>_unchecked()` readers.
- At an array start, `compute_array_item_count()` counts the items directly inside the array.
- `address_pattern_is_uint32()` and `address_pattern_as_uint32()` support integer address patterns.

### Reading arguments in order

`message.argument_stream()` returns a stream with these readers:

- `read_bool()`
- `read_int32()`
- `read_float()`
- `read_char()`
- `read_rgba_color()`
- `read_midi_message()`
- `read_int64()`
- `read_time_tag()`
- `read_double()`
- `read_blob()`
- `read_string()`
- `read_symbol()`

It also has `eos()`. Finish with `end()`, which raises `ExcessArgumentError`
if any argument is left over.

### Errors

- Malformed input raises `MalformedPacketError`, `MalformedMessageError` or `MalformedBundleError`.
- Reading an argument as the wrong type raises `WrongArgumentTypeError`.
- Reading past the last argument raises `MissingArgumentError`.

All errors derive from `oscpacket.errors.OscError`.

## Printing

`oscpacket.printing` renders received elements as text:

- `format_packet(packet)` adds a trailing newline.
- `format_bundle(bundle, indent=0)`
- `format_message(message)`
- `format_argument(arg)`

For example, the first message above prints as:

```
[/synth/freq int32:440, double:0.5, OSC-string:`sine']
```

## Dispatching

Subclass `oscpacket.listener.OscPacketListener` and implement
`process_message(message, remote_endpoint)`. Then pass incoming data to
`process_packet(data, remote_endpoint)`. Bundles are walked depth first.

Alternatively, use `MessageMappingOscPacketListener` and
`register_message_function(address_pattern, function)`. It calls
`function(message, remote_endpoint)` for messages whose address equals
`address_pattern` exactly. The first registration for an address wins, and
messages with no registered address are ignored.

## What this package does not do

- **No networking.** There are no sockets, no UDP sender or receiver, and no endpoint type. `remote_endpoint` is passed through unchanged, whatever you supply.
- **No scheduling.** Bundle time tags are read and printed, but the listener does not delay messages until their time.
- **No pattern matching.** OSC address pattern wildcards such as `*`, `?` and `[...]` are not matched. Mapping is by exact address.