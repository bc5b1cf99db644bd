# expo_log/codec.py
"""
Compact, URL-safe encoding of the visited flags.

Flags are laid out one bit per pavilion in ascending id order, prefixed with
the bit count as a big-endian uint16, then Base64URL-encoded without padding.
"""
from __future__ import annotations

import base64
import binascii
import re
from typing import Dict, List, Mapping, Sequence

from .catalog import Pavilion
from .errors import InvalidEncodingError, LengthMismatchError

VisitedState = Dict[str, bool]

MAX_BITS = 0xFFFF

_TOKEN_RE = re.compile(r"^[A-Za-z0-9_-]*$")


def _sorted_by_id(pavilions: Sequence[Pavilion]) -> List[Pavilion]:
    return sorted(pavilions, key=lambda p: p.id)


# ---------------------------
# Bit strings
# ---------------------------
def to_bit_string(visited: Mapping[str, bool], pavilions: Sequence[Pavilion]) -> str:
    """'1' per visited pavilion, '0' otherwise, in ascending id order."""
    return "".join("1" if visited.get(p.id) else "0" for p in _sorted_by_id(pavilions))


def from_bit_string(bits: str, pavilions: Sequence[Pavilion]) -> VisitedState:
    if len(bits) != len(pavilions):
        raise LengthMismatchError(
            f"bit string has {len(bits)} bits but catalog has {len(pavilions)} pavilions"
        )
    return {p.id: ch == "1" for p, ch in zip(_sorted_by_id(pavilions), bits)}


def pack_bits(bits: str) -> bytes:
    """8 bits per byte, MSB first; the last chunk is right-padded with '0'."""
    out = bytearray()
    for i in range(0, len(bits), 8):
        out.append(int(bits[i : i + 8].ljust(8, "0"), 2))
    return bytes(out)


def unpack_bits(data: bytes) -> str:
    return "".join(format(b, "08b") for b in data)


# ---------------------------
# Base64URL token
# ---------------------------
def encode(bits: str) -> str:
    if bits == "":
        return ""
    if len(bits) > MAX_BITS:
        raise ValueError(f"cannot encode more than {MAX_BITS} bits")
    payload = len(bits).to_bytes(2, "big") + pack_bits(bits)
    return base64.urlsafe_b64encode(payload).decode("ascii").rstrip("=")


def decode(token: str) -> str:
    """
    Reverse of encode(). Raises InvalidEncodingError for characters outside
    [A-Za-z0-9_-], undecodable payloads, or payloads shorter than the
    2-byte length header.
    """
    if token == "":
        return ""
    if not _TOKEN_RE.match(token):
        raise InvalidEncodingError("token contains characters outside the Base64URL alphabet")

    try:
        padded = token + "=" * (-len(token) % 4)
        data = base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as exc:
        raise InvalidEncodingError("token is not valid Base64URL") from exc

    if len(data) < 2:
        raise InvalidEncodingError("token is too short to carry a length header")

    length = int.from_bytes(data[:2], "big")
    return unpack_bits(data[2:])[:length]


def encode_visited(visited: Mapping[str, bool], pavilions: Sequence[Pavilion]) -> str:
    return encode(to_bit_string(visited, pavilions))


def decode_visited(token: str, pavilions: Sequence[Pavilion]) -> VisitedState:
    # tokens from a larger catalog are truncated rather than rejected
    bits = decode(token)[: len(pavilions)]
    return from_bit_string(bits, pavilions)
