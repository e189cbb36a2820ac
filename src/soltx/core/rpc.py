"""
Chain Client

The pipeline talks to the chain through two calls: fetch a recent blockhash,
and submit a signed transaction then wait for it to reach a commitment
level. `ChainClient` is that interface; `RpcClient` implements it over a
node's JSON-RPC HTTP endpoint.

The client never re-sends a transaction. If confirmation cannot be
observed, it reports the failure and leaves the decision to the user.
"""

import base64
import itertools
import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import base58
import requests

from .errors import RpcError
from .keys import Hash, Signature
from .transactions import SolanaTransaction

logger = logging.getLogger(__name__)

METHOD_NOT_FOUND = -32601


class Commitment(Enum):
    """How settled a transaction must be before we call it done."""
    PROCESSED = 'processed'
    CONFIRMED = 'confirmed'
    FINALIZED = 'finalized'

    @property
    def rank(self) -> int:
        return list(Commitment).index(self)

    def satisfied_by(self, status: Optional[str]) -> bool:
        """Whether a node-reported confirmationStatus meets this level."""
        try:
            return Commitment(status).rank >= self.rank
        except ValueError:
            return False


class TransactionEncoding(Enum):
    BASE58 = 'base58'
    BASE64 = 'base64'

    def encode(self, data: bytes) -> str:
        if self is TransactionEncoding.BASE58:
            return base58.b58encode(data).decode('ascii')
        return base64.b64encode(data).decode('ascii')


@dataclass(frozen=True)
class SendTransactionConfig:
    """
    Options passed along with sendTransaction.

    `None` means "let the node decide".
    """
    skip_preflight: bool = False
    preflight_commitment: Optional[Commitment] = None
    encoding: Optional[TransactionEncoding] = None


@dataclass(frozen=True)
class FeeCalculator:
    lamports_per_signature: int = 0


class ChainClient(ABC):
    """What the submission pipeline needs from a node."""

    @abstractmethod
    def recent_block_reference(self) -> Tuple[Hash, FeeCalculator]:
        """Fetch a fresh recent blockhash and its fee calculator."""

    @abstractmethod
    def submit_and_confirm(self, tx: SolanaTransaction, commitment: Commitment,
                           config: SendTransactionConfig) -> Signature:
        """Submit `tx` once and block until it reaches `commitment`."""


def format_rpc_error(error: Dict[str, Any]) -> str:
    message = error.get('message', 'unknown error')
    code = error.get('code')
    text = f"RPC error {code}: {message}" if code is not None else f"RPC error: {message}"
    data = error.get('data')
    if data:
        text += f" {json.dumps(data, sort_keys=True)}"
    return text


class RpcClient(ChainClient):
    """
    JSON-RPC 2.0 client for a Solana node.

    One HTTP POST per call, no transport-level retries.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 30,
        confirm_timeout: float = 60,
        poll_interval: float = 0.5,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            url: Node JSON-RPC endpoint
            timeout: Per-request timeout in seconds
            confirm_timeout: How long to wait for a submitted transaction
            poll_interval: Delay between signature status polls
            session: HTTP session to use (tests inject a fake one)
        """
        self.url = url
        self.timeout = timeout
        self.confirm_timeout = confirm_timeout
        self.poll_interval = poll_interval
        self.session = session or requests.Session()
        self._ids = itertools.count(1)

    def _request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Make one JSON-RPC call and return its `result`."""
        payload = {
            'jsonrpc': '2.0',
            'id': next(self._ids),
            'method': method,
            'params': params or [],
        }
        try:
            response = self.session.post(
                self.url,
                json=payload,
                headers={'Content-Type': 'application/json'},
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise RpcError(f"{method}: request to {self.url} timed out") from e
        except requests.RequestException as e:
            raise RpcError(f"{method}: request to {self.url} failed: {e}") from e

        logger.debug("POST %s %s - Status: %s", self.url, method, response.status_code)

        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and body.get('error'):
            error = body['error']
            if not isinstance(error, dict):
                error = {'message': str(error)}
            raise RpcError(format_rpc_error(error), code=error.get('code'), data=error.get('data'))

        if not 200 <= response.status_code < 300:
            raise RpcError(f"{method}: HTTP {response.status_code} {response.reason or ''}".rstrip())

        if not isinstance(body, dict) or 'result' not in body:
            raise RpcError(f"{method}: malformed JSON-RPC response")

        return body['result']

    def get_recent_blockhash(self, commitment: Commitment = Commitment.CONFIRMED) -> Tuple[Hash, FeeCalculator]:
        """
        Fetch a recent blockhash.

        Nodes that no longer serve getRecentBlockhash are asked for
        getLatestBlockhash instead.
        """
        params = [{'commitment': commitment.value}]
        method = 'getRecentBlockhash'
        try:
            result = self._request(method, params)
        except RpcError as e:
            if e.code != METHOD_NOT_FOUND:
                raise
            logger.debug("getRecentBlockhash not available, using getLatestBlockhash")
            method = 'getLatestBlockhash'
            result = self._request(method, params)

        try:
            value = result['value']
            blockhash = Hash.from_string(value['blockhash'])
            fee_calculator = FeeCalculator(
                lamports_per_signature=value.get('feeCalculator', {}).get('lamportsPerSignature', 0)
            )
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            raise RpcError(f"{method}: unexpected response: {e}") from e
        return blockhash, fee_calculator

    def recent_block_reference(self) -> Tuple[Hash, FeeCalculator]:
        return self.get_recent_blockhash()

    def send_transaction(self, tx: SolanaTransaction,
                         config: SendTransactionConfig = SendTransactionConfig()) -> Signature:
        """Submit a signed transaction once; returns the signature the node reports."""
        encoding = config.encoding or TransactionEncoding.BASE64
        options: Dict[str, Any] = {
            'skipPreflight': config.skip_preflight,
            'encoding': encoding.value,
        }
        if config.preflight_commitment is not None:
            options['preflightCommitment'] = config.preflight_commitment.value

        result = self._request('sendTransaction', [encoding.encode(tx.serialize()), options])
        try:
            signature = Signature.from_string(result)
        except ValueError as e:
            raise RpcError(f"sendTransaction: invalid signature in response: {e}") from e
        if signature != tx.signature():
            raise RpcError(f"node returned signature {signature}, expected {tx.signature()}")
        return signature

    def get_signature_statuses(self, signatures: List[Signature]) -> List[Optional[Dict[str, Any]]]:
        result = self._request('getSignatureStatuses', [[str(s) for s in signatures]])
        try:
            return result['value']
        except (KeyError, TypeError) as e:
            raise RpcError(f"getSignatureStatuses: unexpected response: {e}") from e

    def confirm_transaction(self, signature: Signature, commitment: Commitment) -> Signature:
        """
        Poll until `signature` reaches `commitment`.

        A transaction error reported by the node is raised verbatim.
        """
        deadline = time.monotonic() + self.confirm_timeout
        while True:
            status = self.get_signature_statuses([signature])[0]
            if status is not None:
                if status.get('err') is not None:
                    raise RpcError(
                        f"transaction {signature} failed: {json.dumps(status['err'], sort_keys=True)}",
                        data=status['err'],
                    )
                if commitment.satisfied_by(status.get('confirmationStatus')):
                    logger.debug("Transaction %s reached %s in slot %s",
                                 signature, commitment.value, status.get('slot'))
                    return signature

            if time.monotonic() >= deadline:
                raise RpcError(
                    f"unable to confirm transaction {signature} within {self.confirm_timeout:g}s. "
                    "This can happen in situations such as transaction expiration "
                    "and insufficient fee-payer funds"
                )
            time.sleep(self.poll_interval)

    def submit_and_confirm(self, tx: SolanaTransaction, commitment: Commitment,
                           config: SendTransactionConfig) -> Signature:
        signature = self.send_transaction(tx, config)
        logger.info("Waiting for %s commitment on %s", commitment.value, signature)
        return self.confirm_transaction(signature, commitment)
