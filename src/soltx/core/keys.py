"""
Fixed-Size Byte Values

Public keys, blockhashes and signatures all travel as base58 strings at the
boundary (files, RPC, terminal) and as fixed-size byte strings internally.
Each type checks its length on construction, so a value that exists is a
value of the right size.
"""

from dataclasses import dataclass

import base58


@dataclass(frozen=True)
class FixedBytes:
    """Immutable byte string of exactly `SIZE` bytes, printed as base58."""

    raw: bytes

    SIZE = 0

    def __post_init__(self):
        if not isinstance(self.raw, (bytes, bytearray)):
            raise TypeError(f"{type(self).__name__} expects bytes, got {type(self.raw).__name__}")
        if len(self.raw) != self.SIZE:
            raise ValueError(
                f"{type(self).__name__} must be {self.SIZE} bytes, got {len(self.raw)}"
            )
        object.__setattr__(self, 'raw', bytes(self.raw))

    @classmethod
    def from_string(cls, value: str):
        """Decode a base58 string, rejecting bad characters and wrong lengths."""
        if not isinstance(value, str) or not value or value != value.strip():
            raise ValueError(f"invalid base58 string: {value!r}")
        try:
            raw = base58.b58decode(value)
        except ValueError as e:
            raise ValueError(f"invalid base58 string {value!r}: {e}") from e
        return cls(raw)

    def __bytes__(self) -> bytes:
        return self.raw

    def __str__(self) -> str:
        return base58.b58encode(self.raw).decode('ascii')

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)})"


@dataclass(frozen=True, repr=False)
class PublicKey(FixedBytes):
    """32-byte ed25519 public key."""

    SIZE = 32


@dataclass(frozen=True, repr=False)
class Hash(FixedBytes):
    """32-byte block hash, used as a transaction's recent blockhash."""

    SIZE = 32


@dataclass(frozen=True, repr=False)
class Signature(FixedBytes):
    """64-byte ed25519 signature."""

    SIZE = 64

    @classmethod
    def default(cls) -> 'Signature':
        """All-zero placeholder for a required signer that has not signed."""
        return cls(bytes(cls.SIZE))


SYSTEM_PROGRAM_ID = PublicKey(bytes(32))  # "11111111111111111111111111111111"
