import struct

import pytest

from dnsproxy.packet import (
    DnsHeader,
    DnsQuestion,
    PacketError,
    decode_name,
    error_response,
    is_blacklisted,
    parse_request,
)


def encode_name(name):
    out = b""
    for label in name.split("."):
        out += bytes([len(label)]) + label.encode("ascii")
    return out + b"\x00"


def build_query(name, qtype=1, qclass=1, ident=0x1234, flags=0x0100, extra=b""):
    header = struct.pack("!6H", ident, flags, 1, 0, 0, 0)
    return header + encode_name(name) + struct.pack("!2H", qtype, qclass) + extra


def test_parse_simple_query():
    packet = parse_request(build_query("example.com", qtype=28))
    assert packet.header == DnsHeader(0x1234, 0x0100, 1, 0, 0, 0)
    assert packet.questions == (DnsQuestion("example.com", 28, 1),)


def test_parse_two_questions():
    header = struct.pack("!6H", 7, 0, 2, 0, 0, 0)
    body = (
        encode_name("a.org") + struct.pack("!2H", 1, 1)
        + encode_name("b.net") + struct.pack("!2H", 15, 1)
    )
    packet = parse_request(header + body)
    assert [q.name for q in packet.questions] == ["a.org", "b.net"]
    assert [q.type for q in packet.questions] == [1, 15]


def test_parse_zero_questions():
    data = struct.pack("!6H", 1, 0, 0, 0, 0, 0)
    packet = parse_request(data)
    assert packet.questions == ()
    assert packet.header.id == 1


def test_parse_short_header():
    with pytest.raises(PacketError):
        parse_request(b"\x00" * 11)


def test_parse_truncated_type_class():
    data = build_query("example.com")[:-2]
    with pytest.raises(PacketError):
        parse_request(data)


def test_parse_unterminated_name():
    data = struct.pack("!6H", 1, 0, 1, 0, 0, 0) + b"\x07example"
    with pytest.raises(PacketError):
        parse_request(data)


def test_decode_name_with_pointer():
    first = encode_name("example.com")
    data = struct.pack("!6H", 0, 0, 0, 0, 0, 0) + first
    second_at = len(data)
    data += b"\x03www\xc0\x0c" + b"\xff"
    name, offset = decode_name(data, second_at)
    assert name == "www.example.com"
    assert offset == second_at + 6


def test_decode_name_returns_end_offset():
    data = b"\x00" * 12 + encode_name("example.com") + b"\x00\x01"
    name, offset = decode_name(data, 12)
    assert name == "example.com"
    assert data[offset:] == b"\x00\x01"


def test_decode_root_name():
    name, offset = decode_name(b"\x00\x00", 0)
    assert (name, offset) == ("", 1)


def test_decode_pointer_loop():
    data = b"\x00" * 12 + b"\xc0\x0c\x00"
    with pytest.raises(PacketError):
        decode_name(data, 12)


def test_decode_label_past_end():
    with pytest.raises(PacketError):
        decode_name(b"\x05abc", 0)


def test_decode_name_too_long():
    label = b"\x3f" + b"a" * 63
    data = label * 5 + b"\x00"
    with pytest.raises(PacketError):
        decode_name(data, 0)


def test_blacklist_exact_match():
    assert is_blacklisted("example.com", ["other.org", "example.com"]) is True
    assert is_blacklisted("www.example.com", ["example.com"]) is False


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("www.example.com", True),
        ("a.b.example.co.uk", True),
        ("example.com", False),
        ("www.example.", False),
        ("www.example", False),
        ("wwwexample.com", False),
    ],
)
def test_blacklist_wildcard(name, expected):
    assert is_blacklisted(name, ["*.example.*"]) is expected


def test_short_wildcard_is_literal():
    assert is_blacklisted("x.ab.y", ["*.ab.*"]) is False
    assert is_blacklisted("*.ab.*", ["*.ab.*"]) is True


def test_blacklist_none_inputs():
    assert is_blacklisted(None, ["a.com"]) is False
    assert is_blacklisted("a.com", None) is False
    assert is_blacklisted("a.com", [None, "a.com"]) is True


def test_error_response_sets_flags_and_clears_counts():
    header = struct.pack("!6H", 0xBEEF, 0x0100, 1, 2, 3, 4)
    body = encode_name("example.com") + struct.pack("!2H", 1, 1)
    request = header + body
    response = error_response(request, 3)
    assert len(response) == len(request)
    assert response[2:4] == b"\x81\x03"
    ident, _, qd, an, ns, ar = struct.unpack_from("!6H", response)
    assert (ident, qd, an, ns, ar) == (0xBEEF, 1, 0, 3, 0)
    assert response[12:] == body


def test_error_response_is_parseable():
    request = build_query("blocked.example")
    packet = parse_request(error_response(request, 5))
    assert packet.questions == parse_request(request).questions
    assert packet.header.flags & 0x8000
    assert packet.header.flags & 0x000F == 5


def test_error_response_short_request():
    with pytest.raises(PacketError):
        error_response(b"\x00\x01", 3)