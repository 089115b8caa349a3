"""secp256k1 keypairs with Ethereum addresses and recoverable signatures."""

from __future__ import annotations

import hashlib
import hmac
import re
import secrets
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

from relaybridge.ethutil import keccak256

PRIVATE_KEY_LENGTH = 32
SIGNATURE_LENGTH = 65
DIGEST_LENGTH = 32

P = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEFFFFFC2F
N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
HALF_N = N // 2
G = (
    0x79BE667EF9DCBBAC55A06295CE870B07029BFCDB2DCE28D959F2815B16F81798,
    0x483ADA7726A3C4655DA4FBFC0E1108A8FD17B448A68554199C47D08FFB10D4B8,
)

_HEX = re.compile(r"[0-9a-fA-F]*")

_Point = tuple[int, int] | None


class KeyType(str, Enum):
    """Supported keypair types."""

    SR25519 = "sr25519"
    SECP256K1 = "secp256k1"


def _add(p: _Point, q: _Point) -> _Point:
    if p is None:
        return q
    if q is None:
        return p
    (x1, y1), (x2, y2) = p, q
    if x1 == x2:
        if (y1 + y2) % P == 0:
            return None
        lam = 3 * x1 * x1 * pow(2 * y1, -1, P) % P
    else:
        lam = (y2 - y1) * pow(x2 - x1, -1, P) % P
    x3 = (lam * lam - x1 - x2) % P
    return x3, (lam * (x1 - x3) - y1) % P


def _multiply(k: int, point: _Point = G) -> _Point:
    result: _Point = None
    addend = point
    while k:
        if k & 1:
            result = _add(result, addend)
        addend = _add(addend, addend)
        k >>= 1
    return result


def _rfc6979_nonces(d: int, digest: bytes) -> Iterator[int]:
    """Deterministic nonce candidates for ``d`` and ``digest`` (HMAC-SHA256)."""
    x = d.to_bytes(32, "big")
    h1 = (int.from_bytes(digest, "big") % N).to_bytes(32, "big")
    v = b"\x01" * 32
    k = b"\x00" * 32
    k = hmac.new(k, v + b"\x00" + x + h1, hashlib.sha256).digest()
    v = hmac.new(k, v, hashlib.sha256).digest()
    k = hmac.new(k, v + b"\x01" + x + h1, hashlib.sha256).digest()
    v = hmac.new(k, v, hashlib.sha256).digest()
    while True:
        v = hmac.new(k, v, hashlib.sha256).digest()
        candidate = int.from_bytes(v, "big")
        if 1 <= candidate < N:
            yield candidate
        k = hmac.new(k, v + b"\x00", hashlib.sha256).digest()
        v = hmac.new(k, v, hashlib.sha256).digest()


@dataclass(frozen=True)
class Keypair:
    """A secp256k1 private key and its public key."""

    private_key: int = field(repr=False)
    _public: tuple[int, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.private_key >= N:
            raise ValueError("invalid private key, >=N")
        if self.private_key <= 0:
            raise ValueError("invalid private key, zero or negative")
        object.__setattr__(self, "_public", _multiply(self.private_key))

    def encode(self) -> bytes:
        """The private key as 32 big-endian bytes."""
        return self.private_key.to_bytes(PRIVATE_KEY_LENGTH, "big")

    def common_address(self) -> bytes:
        """The 20-byte Ethereum address of the public key."""
        x, y = self._public
        return keccak256(x.to_bytes(32, "big") + y.to_bytes(32, "big"))[12:]

    def address(self) -> str:
        """The Ethereum address with its mixed-case checksum."""
        lower = self.common_address().hex()
        checksum = keccak256(lower.encode()).hex()
        return "0x" + "".join(
            c.upper() if int(h, 16) >= 8 else c for c, h in zip(lower, checksum)
        )

    def public_key(self) -> str:
        """The compressed public key, hex encoded with a 0x prefix."""
        x, y = self._public
        return "0x" + (bytes([2 + (y & 1)]) + x.to_bytes(32, "big")).hex()

    def sign(self, digest_hash: bytes) -> bytes:
        """Sign a 32-byte digest, returning ``R || S || V`` with V being 0 or 1."""
        digest_hash = bytes(digest_hash)
        if len(digest_hash) != DIGEST_LENGTH:
            raise ValueError(
                f"hash is required to be exactly {DIGEST_LENGTH} bytes ({len(digest_hash)})"
            )
        z = int.from_bytes(digest_hash, "big") % N
        for k in _rfc6979_nonces(self.private_key, digest_hash):
            rx, ry = _multiply(k)
            r = rx % N
            if r == 0:
                continue
            s = pow(k, -1, N) * (z + r * self.private_key) % N
            if s == 0:
                continue
            recovery = (ry & 1) | (2 if rx >= N else 0)
            if s > HALF_N:
                s = N - s
                recovery ^= 1
            return r.to_bytes(32, "big") + s.to_bytes(32, "big") + bytes([recovery])
        raise AssertionError("nonce generator ended")


def new_keypair_from_private_key(priv: bytes) -> Keypair:
    """Build a keypair from exactly 32 bytes of private key."""
    priv = bytes(priv)
    if len(priv) != PRIVATE_KEY_LENGTH:
        raise ValueError("invalid length, need 256 bits")
    return Keypair(int.from_bytes(priv, "big"))


def new_keypair_from_string(priv: str) -> Keypair:
    """Build a keypair from a hex private key without a 0x prefix."""
    if len(priv) % 2 or _HEX.fullmatch(priv) is None:
        raise ValueError("invalid hex data for private key")
    return new_keypair_from_private_key(bytes.fromhex(priv))


def generate_keypair() -> Keypair:
    """Create a keypair from a random private key."""
    return Keypair(secrets.randbelow(N - 1) + 1)


def validate_signature_values(v: int, r: int, s: int, homestead: bool) -> bool:
    """Check that signature values are in range; with ``homestead`` S must be in the lower half."""
    if r < 1 or s < 1:
        return False
    if homestead and s > HALF_N:
        return False
    return r < N and s < N and v in (0, 1)