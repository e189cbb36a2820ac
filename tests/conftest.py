"""Shared fakes for the signer and chain client."""

import textwrap

import pytest

from soltx.core.errors import SignerError
from soltx.core.keys import Hash, PublicKey
from soltx.core.rpc import ChainClient, FeeCalculator
from soltx.core.signers import Keypair, Signer


class FakeChainClient(ChainClient):
    """Records every call; returns the transaction's own signature on submit."""

    def __init__(self, blockhash=None, blockhash_error=None, submit_error=None):
        self.blockhash = blockhash or Hash(bytes(range(32)))
        self.blockhash_error = blockhash_error
        self.submit_error = submit_error
        self.blockhash_calls = 0
        self.submitted = []

    def recent_block_reference(self):
        self.blockhash_calls += 1
        if self.blockhash_error is not None:
            raise self.blockhash_error
        return self.blockhash, FeeCalculator(lamports_per_signature=5000)

    def submit_and_confirm(self, tx, commitment, config):
        self.submitted.append((tx, commitment, config))
        if self.submit_error is not None:
            raise self.submit_error
        return tx.signature()


class RefusingSigner(Signer):
    """A signer whose owner says no, like a rejected hardware wallet prompt."""

    def __init__(self, pubkey: PublicKey):
        self._pubkey = pubkey
        self.attempts = 0

    def public_key(self):
        return self._pubkey

    def sign(self, message):
        self.attempts += 1
        raise SignerError("signing request was rejected by the user")


@pytest.fixture
def keypair():
    return Keypair.from_seed(bytes(range(32)))


@pytest.fixture
def client():
    return FakeChainClient()


@pytest.fixture
def write_document(tmp_path):
    """Write a dedented YAML document and return its path."""
    def write(text, name="tx.yml"):
        path = tmp_path / name
        path.write_text(textwrap.dedent(text))
        return path
    return write
