"""
Transaction Assembler

Binds decoded instructions to a fee payer and a recent blockhash, then signs.
"""

import logging
from typing import List

from .keys import Hash
from .signers import Signer
from .transactions import Instruction, SolanaTransaction, TransactionBuilder

logger = logging.getLogger(__name__)


def assemble_transaction(instructions: List[Instruction], signer: Signer,
                         recent_blockhash: Hash) -> SolanaTransaction:
    """
    Build and sign a transaction paid for by `signer`.

    The signer's key takes the fee payer slot and instructions keep their
    order. Only the fee payer signs: if an instruction asks for another
    signer, that slot keeps the default signature and the node will reject
    the transaction. SignerError and ProtocolError propagate unchanged.
    """
    fee_payer = signer.public_key()
    transaction = (TransactionBuilder(fee_payer)
                   .add_instructions(instructions)
                   .set_recent_blockhash(recent_blockhash)
                   .build_transaction())

    transaction.sign(signer)

    if not transaction.is_signed():
        missing = transaction.message.signer_keys()[1:]
        logger.warning("Transaction requires %d signature(s) besides the fee payer: %s",
                       len(missing), ", ".join(str(key) for key in missing))
    logger.debug("Signed transaction %s (%d instructions, %d accounts)",
                 transaction.signature(), len(instructions), len(transaction.message.account_keys))
    return transaction
