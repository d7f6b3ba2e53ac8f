import pytest

from oscpacket.errors import MalformedMessageError, MalformedPacketError
from oscpacket.listener import MessageMappingOscPacketListener, OscPacketListener
from oscpacket.outbound import OutboundPacketStream
from oscpacket.types import END_BUNDLE, END_MESSAGE, BeginMessage, begin_bundle

ENDPOINT = ("127.0.0.1", 7000)


class Recorder(OscPacketListener):
    def __init__(self):
        self.messages = []
        self.bundles = 0

    def process_bundle(self, bundle, remote_endpoint):
        self.bundles += 1
        super().process_bundle(bundle, remote_endpoint)

    def process_message(self, message, remote_endpoint):
        values = [arg.as_int32() for arg in message]
        self.messages.append((message.address_pattern(), values, remote_endpoint))


def _message(address, *values):
    stream = OutboundPacketStream(512)
    stream << BeginMessage(address)
    for value in values:
        stream << value
    stream << END_MESSAGE
    return stream.data()


def _nested_bundle():
    stream = OutboundPacketStream(1024)
    stream << begin_bundle()
    stream << BeginMessage("/first") << 1 << END_MESSAGE
    stream << begin_bundle(99)
    stream << BeginMessage("/second") << 2 << END_MESSAGE
    stream << END_BUNDLE
    stream << BeginMessage("/third") << 3 << END_MESSAGE
    stream << END_BUNDLE
    return stream.data()


def test_base_listener_is_abstract():
    with pytest.raises(TypeError):
        OscPacketListener()


def test_single_message_dispatched():
    listener = Recorder()
    listener.process_packet(_message("/one", 5, 6), ENDPOINT)
    assert listener.messages == [("/one", [5, 6], ENDPOINT)]
    assert listener.bundles == 0


def test_nested_bundles_dispatched_in_order():
    listener = Recorder()
    listener.process_packet(_nested_bundle(), ENDPOINT)
    assert [m[0] for m in listener.messages] == ["/first", "/second", "/third"]
    assert [m[1] for m in listener.messages] == [[1], [2], [3]]
    assert listener.bundles == 2


def test_malformed_packet_raises():
    listener = MessageMappingOscPacketListener()
    received = []
    listener.register_message_function("/ab", lambda m, ep: received.append(m))
    with pytest.raises(MalformedPacketError) as info:
        listener.process_packet(b"/ab", ENDPOINT)
    assert str(info.value) == "element size must be multiple of four"
    assert received == []


def test_malformed_message_raises():
    listener = MessageMappingOscPacketListener()
    received = []
    listener.register_message_function("/abc", lambda m, ep: received.append(m))
    with pytest.raises(MalformedMessageError) as info:
        listener.process_packet(b"/abc", ENDPOINT)
    assert str(info.value) == "unterminated address pattern"
    assert received == []


class Mapper(MessageMappingOscPacketListener):
    def __init__(self):
        super().__init__()
        self.calls = []
        self.register_message_function("/ping", self.on_ping)
        self.register_message_function("/value", self.on_value)

    def on_ping(self, message, remote_endpoint):
        self.calls.append(("ping", remote_endpoint))

    def on_value(self, message, remote_endpoint):
        self.calls.append(("value", message.argument_stream().read_int32()))


def test_mapping_dispatches_registered_addresses():
    mapper = Mapper()
    mapper.process_packet(_message("/ping"), ENDPOINT)
    mapper.process_packet(_message("/value", 17), ENDPOINT)
    assert mapper.calls == [("ping", ENDPOINT), ("value", 17)]


def test_mapping_ignores_unknown_addresses():
    mapper = Mapper()
    mapper.process_packet(_message("/unknown", 1), ENDPOINT)
    assert mapper.calls == []


def test_mapping_first_registration_wins():
    mapper = Mapper()
    seen = []
    mapper.register_message_function("/ping", lambda m, ep: seen.append(ep))
    mapper.process_packet(_message("/ping"), ENDPOINT)
    assert mapper.calls == [("ping", ENDPOINT)]
    assert seen == []


def test_mapping_inside_bundle():
    stream = OutboundPacketStream(512)
    stream << begin_bundle()
    stream << BeginMessage("/value") << 4 << END_MESSAGE
    stream << BeginMessage("/ping") << END_MESSAGE
    stream << END_BUNDLE
    mapper = Mapper()
    mapper.process_packet(stream.data(), ENDPOINT)
    assert mapper.calls == [("value", 4), ("ping", ENDPOINT)]


def test_plain_callable_registration():
    listener = MessageMappingOscPacketListener()
    received = []
    listener.register_message_function(
        "/cb", lambda message, ep: received.append(message.argument_count())
    )
    listener.process_packet(_message("/cb", 1, 2, 3), ENDPOINT)
    assert received == [3]