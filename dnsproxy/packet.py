"""Parsing DNS requests, matching names against a blacklist and building error replies."""

from __future__ import annotations

import struct
from collections.abc import Iterable
from dataclasses import dataclass, field

HEADER_SIZE = 12
MAX_NAME_LENGTH = 255
_HEADER = struct.Struct("!6H")
_QUESTION_TAIL = struct.Struct("!2H")
_RESPONSE_BIT = 0x8000


class PacketError(ValueError):
    """Raised when a DNS message is truncated or malformed."""


@dataclass(frozen=True)
class DnsHeader:
    """The fixed twelve-byte header of a DNS message."""

    id: int
    flags: int
    question_count: int
    answer_count: int
    nameserver_count: int
    additional_count: int


@dataclass(frozen=True)
class DnsQuestion:
    """One entry of the question section."""

    name: str
    type: int
    qclass: int


@dataclass(frozen=True)
class DnsPacket:
    """A parsed request: its header and its questions."""

    header: DnsHeader
    questions: tuple[DnsQuestion, ...] = field(default_factory=tuple)


def _unpack_header(data: bytes) -> DnsHeader:
    if len(data) < HEADER_SIZE:
        raise PacketError("message shorter than the DNS header")
    return DnsHeader(*_HEADER.unpack_from(data, 0))


def decode_name(data: bytes, offset: int) -> tuple[str, int]:
    """Decode a possibly compressed domain name at ``offset``.

    Returns the dotted name and the offset of the first byte after the name
    as it is written at ``offset``, so a followed pointer does not move it.
    """
    size = len(data)
    labels: list[str] = []
    length = 0
    resume: int | None = None
    visited: set[int] = set()

    while offset < size and data[offset] != 0:
        label_len = data[offset]
        offset += 1

        if label_len >= 0xC0:
            if offset >= size:
                raise PacketError("truncated compression pointer")
            pointer = ((label_len & 0x3F) << 8) | data[offset]
            offset += 1
            if resume is None:
                resume = offset
            if pointer in visited:
                raise PacketError("compression pointer loop")
            visited.add(pointer)
            offset = pointer
            continue

        if 0 < length < MAX_NAME_LENGTH:
            length += 1  # separating dot
        if offset + label_len > size or length + label_len > MAX_NAME_LENGTH:
            raise PacketError("label runs past the message or name too long")

        labels.append(data[offset:offset + label_len].decode("latin-1"))
        length += label_len
        offset += label_len

    if offset >= size:
        raise PacketError("name is not terminated")
    offset += 1

    if resume is not None:
        offset = resume
    return ".".join(labels), offset


def parse_request(data: bytes) -> DnsPacket:
    """Parse the header and question section of a DNS request."""
    header = _unpack_header(data)
    questions = []
    offset = HEADER_SIZE
    for _ in range(header.question_count):
        name, offset = decode_name(data, offset)
        if offset + _QUESTION_TAIL.size > len(data):
            raise PacketError("question type and class are truncated")
        qtype, qclass = _QUESTION_TAIL.unpack_from(data, offset)
        offset += _QUESTION_TAIL.size
        questions.append(DnsQuestion(name, qtype, qclass))
    return DnsPacket(header, tuple(questions))


def _matches_wildcard(name: str, middle: str) -> bool:
    if len(middle) >= 256 or len(name) < len(middle):
        return False
    pos = name.find(middle)
    if pos <= 0:
        return False
    after = pos + len(middle)
    return (
        name[pos - 1] == "."
        and after + 1 < len(name)
        and name[after] == "."
    )


def is_blacklisted(name: str | None, patterns: Iterable[str | None] | None) -> bool:
    """Tell whether ``name`` is matched by any blacklist entry.

    An entry of the form ``*.middle.*`` (longer than eight characters) matches
    names containing ``.middle.`` followed by at least one character; any other
    entry must equal the name exactly.
    """
    if name is None or patterns is None:
        return False
    for entry in patterns:
        if entry is None:
            continue
        if len(entry) > 8 and entry.startswith("*.") and entry.endswith(".*"):
            if _matches_wildcard(name, entry[2:-2]):
                return True
        elif name == entry:
            return True
    return False


def error_response(request: bytes, flags: int) -> bytes:
    """Turn ``request`` into a reply carrying ``flags`` (e.g. an rcode) and no answers."""
    header = _unpack_header(request)
    new_flags = (header.flags | _RESPONSE_BIT | flags) & 0xFFFF
    head = _HEADER.pack(
        header.id,
        new_flags,
        header.question_count,
        0,
        header.nameserver_count,
        0,
    )
    return head + bytes(request[HEADER_SIZE:])