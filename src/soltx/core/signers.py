"""
Signers

A signer is anything that can name its public key and sign a message with
the matching private key. The transaction only ever sees this interface, so
a local keypair file, a key piped on stdin or a test double are
interchangeable.

Local keys are Ed25519 (RFC 8032) keys handled by the `ecdsa` package.
Signing is deterministic: the same key and message always give the same
signature.
"""

import json
import logging
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, TextIO
from urllib.parse import unquote, urlparse

from ecdsa import BadSignatureError, Ed25519, SigningKey, VerifyingKey
from ecdsa.errors import MalformedPointError

from .errors import SignerError
from .keys import PublicKey, Signature

logger = logging.getLogger(__name__)

SEED_LENGTH = 32
KEYPAIR_LENGTH = 64             # seed followed by public key, Solana's layout


class Signer(ABC):
    """Capability to sign messages on behalf of one public key."""

    @abstractmethod
    def public_key(self) -> PublicKey:
        """The key signatures from this signer verify against."""

    @abstractmethod
    def sign(self, message: bytes) -> Signature:
        """Sign `message`; raises SignerError if the signer cannot or will not."""


class Keypair(Signer):
    """
    Local Ed25519 keypair.

    Solana stores keypairs as 64 bytes: the 32-byte secret seed followed by
    the 32-byte public key.
    """

    def __init__(self, signing_key: SigningKey):
        self._signing_key = signing_key
        self._public_key = PublicKey(signing_key.verifying_key.to_string())

    @classmethod
    def generate(cls) -> 'Keypair':
        return cls(SigningKey.generate(curve=Ed25519))

    @classmethod
    def from_seed(cls, seed: bytes) -> 'Keypair':
        """Derive a keypair from a 32-byte secret seed."""
        if len(seed) != SEED_LENGTH:
            raise SignerError(f"keypair seed must be {SEED_LENGTH} bytes, got {len(seed)}")
        return cls(SigningKey.from_string(bytes(seed), curve=Ed25519))

    @classmethod
    def from_bytes(cls, secret: bytes) -> 'Keypair':
        """Load from Solana's 64-byte seed-then-pubkey layout."""
        if len(secret) != KEYPAIR_LENGTH:
            raise SignerError(f"keypair must be {KEYPAIR_LENGTH} bytes, got {len(secret)}")
        keypair = cls.from_seed(secret[:SEED_LENGTH])
        if bytes(keypair.public_key()) != bytes(secret[SEED_LENGTH:]):
            raise SignerError("keypair public key does not match its secret key")
        return keypair

    @classmethod
    def from_json(cls, text: str) -> 'Keypair':
        """Parse the JSON array of 64 integers written by `solana-keygen`."""
        try:
            values = json.loads(text)
        except ValueError as e:
            raise SignerError(f"keypair is not valid JSON: {e}") from e
        if not isinstance(values, list) or not all(isinstance(v, int) and 0 <= v <= 255 for v in values):
            raise SignerError("keypair must be a JSON array of byte values")
        return cls.from_bytes(bytes(values))

    def to_bytes(self) -> bytes:
        return self._signing_key.to_string() + bytes(self._public_key)

    def to_json(self) -> str:
        return json.dumps(list(self.to_bytes()))

    def public_key(self) -> PublicKey:
        return self._public_key

    def sign(self, message: bytes) -> Signature:
        return Signature(self._signing_key.sign(message))

    def __repr__(self) -> str:
        return f"Keypair({self._public_key})"


def verify_signature(pubkey: PublicKey, message: bytes, signature: Signature) -> bool:
    """Check an Ed25519 signature; malformed keys simply fail verification."""
    try:
        verifying_key = VerifyingKey.from_string(bytes(pubkey), curve=Ed25519)
        return verifying_key.verify(bytes(signature), message)
    except (BadSignatureError, MalformedPointError, ValueError):
        return False


def read_keypair(stream: TextIO) -> Keypair:
    return Keypair.from_json(stream.read())


def read_keypair_file(path) -> Keypair:
    """Read a `solana-keygen` JSON keypair file."""
    path = Path(path).expanduser()
    try:
        with open(path) as f:
            return read_keypair(f)
    except OSError as e:
        raise SignerError(f"could not read keypair file {path}: {e.strerror or e}") from e
    except SignerError as e:
        raise SignerError(f"invalid keypair file {path}: {e}") from e


def write_keypair_file(keypair: Keypair, path) -> Path:
    path = Path(path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        f.write(keypair.to_json())
    return path


REMOTE_WALLET_SCHEMES = ('usb',)


def signer_from_path(path: str, stdin: Optional[TextIO] = None) -> Signer:
    """
    Resolve a signer source to a signer.

    Accepted forms:
        /path/to/id.json, ~/id.json     local keypair file
        file:///path/to/id.json         local keypair file as a URI
        stdin                           keypair JSON piped on standard input

    Remote hardware wallets (usb://ledger...) are recognized but not
    supported by this build.
    """
    if not path:
        raise SignerError("no signer source given")

    if path == 'stdin':
        logger.debug("Reading keypair from stdin")
        return read_keypair(stdin or sys.stdin)

    parsed = urlparse(path)
    scheme = parsed.scheme.lower()
    # Single-letter schemes are Windows drive letters
    if len(scheme) <= 1:
        logger.debug("Reading keypair file %s", path)
        return read_keypair_file(path)
    if scheme == 'file':
        return read_keypair_file(unquote(parsed.netloc + parsed.path))
    if scheme in REMOTE_WALLET_SCHEMES:
        raise SignerError(f"remote wallet signers are not supported: {path}")
    raise SignerError(f"unsupported signer source: {path}")
