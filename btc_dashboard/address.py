"""Bitcoin address classification for the receive overlay.

Addresses are checked syntactically only: base58check for legacy P2PKH/P2SH
and bech32/bech32m for segwit (BIP173, BIP350). Nothing here talks to a node.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import Enum

BECH32_CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
BECH32M_CONST = 0x2BC830A3
BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"


class Network(Enum):
    """Chain variants in the order they are reported."""

    MAIN = "mainnet"
    TEST = "testnet"
    TEST4 = "testnet4"
    SIG = "signet"
    REG = "regtest"

    @property
    def label(self) -> str:
        return self.value


TEST_FAMILY = frozenset({Network.TEST, Network.TEST4, Network.SIG, Network.REG})

BASE58_VERSIONS = {
    0x00: frozenset({Network.MAIN}),
    0x05: frozenset({Network.MAIN}),
    0x6F: TEST_FAMILY,
    0xC4: TEST_FAMILY,
}

SEGWIT_HRPS = {
    "bc": frozenset({Network.MAIN}),
    "tb": frozenset({Network.TEST, Network.TEST4, Network.SIG}),
    "bcrt": frozenset({Network.REG}),
}


class ValidityKind(Enum):
    EMPTY = "empty"
    INVALID = "invalid"
    VALID = "valid"


@dataclass(frozen=True)
class Validity:
    """Result of classifying an address string.

    Exactly one of ``Empty``, ``Invalid`` or ``ValidForNetwork(network)``;
    ``network`` is set only for the valid case.
    """

    kind: ValidityKind
    network: Network | None = None

    @classmethod
    def empty(cls) -> "Validity":
        return cls(ValidityKind.EMPTY)

    @classmethod
    def invalid(cls) -> "Validity":
        return cls(ValidityKind.INVALID)

    @classmethod
    def valid_for(cls, network: Network) -> "Validity":
        return cls(ValidityKind.VALID, network)

    @property
    def is_valid(self) -> bool:
        return self.kind is ValidityKind.VALID

    @property
    def label(self) -> str:
        if self.network is not None:
            return f"VALID ({self.network.label})"
        return self.kind.name


def bech32_polymod(values: list[int]) -> int:
    """Compute bech32 checksum polymod."""
    GEN = [0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3]
    chk = 1
    for value in values:
        b = chk >> 25
        chk = (chk & 0x1FFFFFF) << 5 ^ value
        for i in range(5):
            chk ^= GEN[i] if ((b >> i) & 1) else 0
    return chk


def bech32_hrp_expand(hrp: str) -> list[int]:
    """Expand HRP for bech32 checksum."""
    return [ord(x) >> 5 for x in hrp] + [0] + [ord(x) & 31 for x in hrp]


def bech32_create_checksum(hrp: str, data: list[int], spec: str) -> list[int]:
    """Compute bech32/bech32m checksum.

    Args:
        hrp: Human-readable part
        data: Data values (5-bit)
        spec: Either 'bech32' or 'bech32m'

    Returns:
        Checksum values (6 elements)
    """
    values = bech32_hrp_expand(hrp) + data
    const = BECH32M_CONST if spec == "bech32m" else 1
    polymod = bech32_polymod(values + [0, 0, 0, 0, 0, 0]) ^ const
    return [(polymod >> 5 * (5 - i)) & 31 for i in range(6)]


def convertbits(data, frombits: int, tobits: int, pad: bool = True) -> list[int] | None:
    """Regroup ``data`` from ``frombits``-wide to ``tobits``-wide values.

    Returns None when a value is out of range or, without padding, when the
    leftover bits are not zero.
    """
    acc = 0
    bits = 0
    ret = []
    maxv = (1 << tobits) - 1
    max_acc = (1 << (frombits + tobits - 1)) - 1

    for value in data:
        if value < 0 or (value >> frombits):
            return None
        acc = ((acc << frombits) | value) & max_acc
        bits += frombits
        while bits >= tobits:
            bits -= tobits
            ret.append((acc >> bits) & maxv)

    if pad:
        if bits:
            ret.append((acc << (tobits - bits)) & maxv)
    elif bits >= frombits or ((acc << (tobits - bits)) & maxv):
        return None

    return ret


def encode_segwit_address(hrp: str, witver: int, witprog: bytes) -> str:
    """Encode a segwit address using bech32m (for witness v1+) or bech32 (v0)."""
    spec = "bech32m" if witver >= 1 else "bech32"
    data = convertbits(witprog, 8, 5)
    if data is None:
        raise ValueError("Failed to convert witness program to 5-bit")
    combined = [witver] + data
    checksum = bech32_create_checksum(hrp, combined, spec)
    return hrp + "1" + "".join(BECH32_CHARSET[d] for d in combined + checksum)


def _bech32_decode(address: str) -> tuple[str, list[int], str] | None:
    if any(ord(ch) < 33 or ord(ch) > 126 for ch in address):
        return None
    if address.lower() != address and address.upper() != address:
        return None
    address = address.lower()
    pos = address.rfind("1")
    if pos < 1 or pos + 7 > len(address) or len(address) > 90:
        return None
    if any(ch not in BECH32_CHARSET for ch in address[pos + 1:]):
        return None
    hrp = address[:pos]
    data = [BECH32_CHARSET.find(ch) for ch in address[pos + 1:]]
    const = bech32_polymod(bech32_hrp_expand(hrp) + data)
    if const == 1:
        spec = "bech32"
    elif const == BECH32M_CONST:
        spec = "bech32m"
    else:
        return None
    return hrp, data[:-6], spec


def _segwit_networks(address: str) -> frozenset[Network]:
    decoded = _bech32_decode(address)
    if decoded is None:
        return frozenset()
    hrp, data, spec = decoded
    networks = SEGWIT_HRPS.get(hrp)
    if networks is None or not data:
        return frozenset()
    witver = data[0]
    if witver > 16:
        return frozenset()
    program = convertbits(data[1:], 5, 8, False)
    if program is None or not 2 <= len(program) <= 40:
        return frozenset()
    if witver == 0 and (len(program) not in (20, 32) or spec != "bech32"):
        return frozenset()
    if witver != 0 and spec != "bech32m":
        return frozenset()
    return networks


def _b58decode_check(address: str) -> bytes | None:
    number = 0
    for ch in address:
        index = BASE58_ALPHABET.find(ch)
        if index < 0:
            return None
        number = number * 58 + index
    raw = number.to_bytes((number.bit_length() + 7) // 8, "big")
    leading_zeros = len(address) - len(address.lstrip("1"))
    raw = b"\x00" * leading_zeros + raw
    if len(raw) < 5:
        return None
    payload, checksum = raw[:-4], raw[-4:]
    if hashlib.sha256(hashlib.sha256(payload).digest()).digest()[:4] != checksum:
        return None
    return payload


def _base58_networks(address: str) -> frozenset[Network]:
    payload = _b58decode_check(address)
    if payload is None or len(payload) != 21:
        return frozenset()
    return BASE58_VERSIONS.get(payload[0], frozenset())


def classify(address: str) -> Validity:
    """Classify ``address`` after trimming surrounding whitespace."""

    candidate = address.strip()
    if not candidate:
        return Validity.empty()
    networks = _segwit_networks(candidate) or _base58_networks(candidate)
    for network in Network:
        if network in networks:
            return Validity.valid_for(network)
    return Validity.invalid()
