"""SHA-1 message digest.

Pure-Python implementation of FIPS 180-4 SHA-1, used to sign OVH API
requests. Output is byte-exact with any standard SHA-1.
"""

import struct
from typing import List, Union

_H0 = (0x67452301, 0xEFCDAB89, 0x98BADCFE, 0x10325476, 0xC3D2E1F0)
_K = (0x5A827999, 0x6ED9EBA1, 0x8F1BBCDC, 0xCA62C1D6)
_MASK = 0xFFFFFFFF


def _rotl(value: int, count: int) -> int:
    return ((value << count) | (value >> (32 - count))) & _MASK


def _pad(message: bytes) -> bytes:
    """Append the 0x80 marker, zero fill, and the 64-bit bit length."""
    bit_length = (len(message) * 8) & 0xFFFFFFFFFFFFFFFF
    padding = b"\x80" + b"\x00" * ((55 - len(message)) % 64)
    return message + padding + struct.pack(">Q", bit_length)


def _compress(state: List[int], block: bytes) -> None:
    w = list(struct.unpack(">16I", block))
    for i in range(16, 80):
        w.append(_rotl(w[i - 3] ^ w[i - 8] ^ w[i - 14] ^ w[i - 16], 1))

    a, b, c, d, e = state

    for i in range(80):
        if i < 20:
            f = (b & c) | (~b & d)
            k = _K[0]
        elif i < 40:
            f = b ^ c ^ d
            k = _K[1]
        elif i < 60:
            f = (b & c) | (b & d) | (c & d)
            k = _K[2]
        else:
            f = b ^ c ^ d
            k = _K[3]

        temp = (_rotl(a, 5) + (f & _MASK) + e + k + w[i]) & _MASK
        e = d
        d = c
        c = _rotl(b, 30)
        b = a
        a = temp

    state[0] = (state[0] + a) & _MASK
    state[1] = (state[1] + b) & _MASK
    state[2] = (state[2] + c) & _MASK
    state[3] = (state[3] + d) & _MASK
    state[4] = (state[4] + e) & _MASK


def sha1_digest(message: Union[bytes, str]) -> bytes:
    """Compute the raw 20-byte SHA-1 digest of a message.

    Args:
        message: Bytes to hash. Strings are encoded as UTF-8.

    Returns:
        20-byte digest.
    """
    if isinstance(message, str):
        message = message.encode("utf-8")

    data = _pad(bytes(message))
    state = list(_H0)
    for offset in range(0, len(data), 64):
        _compress(state, data[offset:offset + 64])

    return struct.pack(">5I", *state)


def sha1_hex(message: Union[bytes, str]) -> str:
    """Compute the SHA-1 digest of a message as 40 lowercase hex characters."""
    return sha1_digest(message).hex()
