import pytest

from wgcore.messages import (
    MESSAGE_COOKIE_REPLY_SIZE,
    MESSAGE_INITIATION_SIZE,
    MESSAGE_RESPONSE_SIZE,
    MessageCookieReply,
    MessageInitiation,
    MessageLengthError,
    MessageResponse,
)


def _initiation():
    return MessageInitiation(
        sender=0x01020304,
        ephemeral=bytes(range(32)),
        static=bytes(range(100, 148)),
        timestamp=bytes(range(200, 228)),
        mac1=b"\xaa" * 16,
        mac2=b"\xbb" * 16,
    )


def _response():
    return MessageResponse(
        sender=7,
        receiver=0xFFFFFFFF,
        ephemeral=bytes(range(32, 64)),
        empty=b"\x11" * 16,
        mac1=b"\x22" * 16,
        mac2=b"\x33" * 16,
    )


def _cookie_reply():
    return MessageCookieReply(receiver=42, nonce=bytes(range(24)), cookie=bytes(range(50, 82)))


def test_initiation_round_trip():
    msg = _initiation()
    packed = msg.pack()
    assert len(packed) == MESSAGE_INITIATION_SIZE
    assert MessageInitiation.unpack(packed) == msg


def test_initiation_layout():
    msg = _initiation()
    packed = msg.pack()
    assert packed[:4] == b"\x01\x00\x00\x00"
    assert packed[4:8] == b"\x04\x03\x02\x01"
    assert packed[8:40] == msg.ephemeral
    assert packed[40:88] == msg.static
    assert packed[88:116] == msg.timestamp
    assert packed[116:132] == msg.mac1
    assert packed[132:148] == msg.mac2


def test_response_round_trip_and_layout():
    msg = _response()
    packed = msg.pack()
    assert len(packed) == MESSAGE_RESPONSE_SIZE
    assert packed[:4] == b"\x02\x00\x00\x00"
    assert packed[8:12] == b"\xff\xff\xff\xff"
    assert packed[12:44] == msg.ephemeral
    assert packed[44:60] == msg.empty
    assert packed[60:76] == msg.mac1
    assert packed[76:92] == msg.mac2
    assert MessageResponse.unpack(packed) == msg


def test_cookie_reply_round_trip_and_layout():
    msg = _cookie_reply()
    packed = msg.pack()
    assert len(packed) == MESSAGE_COOKIE_REPLY_SIZE
    assert packed[0] == 3
    assert packed[8:32] == msg.nonce
    assert packed[32:64] == msg.cookie
    assert MessageCookieReply.unpack(packed) == msg


def test_unpack_from_bytearray():
    packed = bytearray(_cookie_reply().pack())
    assert MessageCookieReply.unpack(packed).receiver == 42


@pytest.mark.parametrize(
    "cls, size",
    [
        (MessageInitiation, MESSAGE_INITIATION_SIZE),
        (MessageResponse, MESSAGE_RESPONSE_SIZE),
        (MessageCookieReply, MESSAGE_COOKIE_REPLY_SIZE),
    ],
)
@pytest.mark.parametrize("delta", [-1, 1])
def test_unpack_wrong_length(cls, size, delta):
    with pytest.raises(MessageLengthError, match="message length mismatch"):
        cls.unpack(bytes(size + delta))


def test_length_error_is_value_error():
    with pytest.raises(ValueError):
        MessageResponse.unpack(b"")


def test_unpack_keeps_type_field():
    packed = bytearray(_initiation().pack())
    packed[0] = 9
    assert MessageInitiation.unpack(bytes(packed)).msg_type == 9


def test_default_messages_are_zero_filled():
    packed = MessageCookieReply().pack()
    assert packed[4:] == bytes(MESSAGE_COOKIE_REPLY_SIZE - 4)
    assert MessageInitiation().msg_type == 1
    assert MessageResponse().msg_type == 2


def test_wrong_field_size_rejected():
    with pytest.raises(ValueError, match="ephemeral"):
        MessageInitiation(ephemeral=bytes(31))


@pytest.mark.parametrize("value", [-1, 1 << 32])
def test_out_of_range_integer_rejected(value):
    with pytest.raises(ValueError, match="sender"):
        MessageResponse(sender=value)