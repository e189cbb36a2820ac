"""
Submission Driver

Runs one transaction through the pipeline:

    DECODED -> REFERENCED -> SIGNED -> SUBMITTED -> CONFIRMED

Any step may fail; nothing here retries. Re-sending a transaction whose
confirmation was merely lost could land it twice, so retrying is left to the
user.
"""

import logging
from typing import Callable, List, Optional

from .assembler import assemble_transaction
from .keys import Signature
from .rpc import ChainClient, Commitment, SendTransactionConfig
from .signers import Signer
from .transactions import Instruction, SolanaTransaction

logger = logging.getLogger(__name__)

# Submit exactly what the user wrote: no node-side simulation that could
# reject it early. Invalid transactions still reach the cluster and still
# pay fees.
DEFAULT_SEND_CONFIG = SendTransactionConfig(
    skip_preflight=True,
    preflight_commitment=None,
    encoding=None,
)

DEFAULT_COMMITMENT = Commitment.CONFIRMED


def submit_transaction(transaction: SolanaTransaction, client: ChainClient,
                       commitment: Commitment = DEFAULT_COMMITMENT) -> Signature:
    """Hand a signed transaction to the client exactly once."""
    logger.debug("SUBMITTED %s", transaction.signature())
    signature = client.submit_and_confirm(transaction, commitment, DEFAULT_SEND_CONFIG)
    logger.debug("CONFIRMED %s", signature)
    return signature


def send_transaction(
    instructions: List[Instruction],
    signer: Signer,
    client: ChainClient,
    commitment: Commitment = DEFAULT_COMMITMENT,
    on_signed: Optional[Callable[[SolanaTransaction], None]] = None,
) -> Signature:
    """
    Fetch a blockhash, assemble and sign, submit, wait for `commitment`.

    `on_signed` sees the signed transaction before submission, which is
    the last moment its signature can be reported if the wait is cut short.
    """
    blockhash, _fee_calculator = client.recent_block_reference()
    logger.debug("REFERENCED blockhash %s", blockhash)

    transaction = assemble_transaction(instructions, signer, blockhash)
    logger.debug("SIGNED %s", transaction.signature())

    if on_signed is not None:
        on_signed(transaction)

    return submit_transaction(transaction, client, commitment)
