"""
Solana Transaction and Instruction Model

This implements Solana's legacy transaction structure where:
- Transactions contain multiple instructions that execute atomically
- All account access is declared upfront in a single account table
- Instructions reference accounts and programs by index into that table
- Signatures cover the serialized message, fee payer always in slot 0

The binary layout is the one validators expect byte for byte.

Based on: https://solana.com/docs/core/transactions
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from .accounts import AccountMeta
from .errors import ProtocolError
from .keys import Hash, PublicKey, Signature
from .signers import Signer, verify_signature

MAX_ACCOUNT_KEYS = 256          # Account indices are a single byte
MAX_COMPACT_U16 = 0xFFFF


def encode_length(length: int) -> bytes:
    """
    Encode a length as Solana's compact-u16 ("shortvec").

    Seven bits per byte, low bits first, high bit set on every byte but the
    last. Values up to 0xFFFF fit in at most three bytes.
    """
    if not 0 <= length <= MAX_COMPACT_U16:
        raise ProtocolError(f"length {length} does not fit in a compact-u16")
    out = bytearray()
    while True:
        byte = length & 0x7F
        length >>= 7
        if length:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


@dataclass
class Instruction:
    """
    High-level instruction before compilation to indices.

    This is what the decoder produces from a document and what the
    builder compiles down to a CompiledInstruction.
    """
    program_id: PublicKey             # Program to invoke
    accounts: List[AccountMeta]       # Accounts with access metadata, in order
    data: bytes                       # Instruction data

    def __str__(self) -> str:
        return f"Instruction({str(self.program_id)[:8]}..., {len(self.accounts)} accounts, {len(self.data)} bytes)"


@dataclass
class MessageHeader:
    """
    Transaction message header with account access metadata.

    This tells the runtime how many accounts need to sign and
    which accounts are read-only vs writable.
    """
    num_required_signatures: int        # Number of signatures required
    num_readonly_signed_accounts: int   # Read-only accounts that must sign
    num_readonly_unsigned_accounts: int  # Read-only accounts (no signature)

    def serialize(self) -> bytes:
        return bytes([
            self.num_required_signatures,
            self.num_readonly_signed_accounts,
            self.num_readonly_unsigned_accounts,
        ])


@dataclass
class CompiledInstruction:
    """
    Instruction compiled to reference accounts by index.

    Instead of embedding full account keys, we reference them by their
    position in the message's account table.
    """
    program_id_index: int           # Index into account_keys for program
    accounts: List[int]             # Indices into account_keys
    data: bytes                     # Program-specific instruction data

    def serialize(self) -> bytes:
        return b''.join([
            bytes([self.program_id_index]),
            encode_length(len(self.accounts)),
            bytes(self.accounts),
            encode_length(len(self.data)),
            self.data,
        ])

    def __str__(self) -> str:
        return f"Instruction(program_id_index={self.program_id_index}, accounts={self.accounts}, data_len={len(self.data)})"


@dataclass
class TransactionMessage:
    """
    The signed part of a transaction.

    Its serialization is the canonical message: the exact bytes every
    signature covers.
    """
    header: MessageHeader
    account_keys: List[PublicKey]       # All account public keys referenced
    recent_blockhash: Hash              # Recent blockhash for replay protection
    instructions: List[CompiledInstruction]

    def serialize(self) -> bytes:
        """Serialize message for signing and transmission."""
        parts = [self.header.serialize(), encode_length(len(self.account_keys))]
        parts.extend(bytes(key) for key in self.account_keys)
        parts.append(bytes(self.recent_blockhash))
        parts.append(encode_length(len(self.instructions)))
        parts.extend(instruction.serialize() for instruction in self.instructions)
        return b''.join(parts)

    def signer_keys(self) -> List[PublicKey]:
        """Keys whose signatures the transaction requires, fee payer first."""
        return self.account_keys[:self.header.num_required_signatures]

    def is_writable(self, index: int) -> bool:
        header = self.header
        if index < header.num_required_signatures:
            return index < header.num_required_signatures - header.num_readonly_signed_accounts
        return index < len(self.account_keys) - header.num_readonly_unsigned_accounts

    def decompile_instructions(self) -> List[Instruction]:
        """Expand compiled instructions back to key-based instructions."""
        signers = self.header.num_required_signatures
        return [
            Instruction(
                program_id=self.account_keys[compiled.program_id_index],
                accounts=[
                    AccountMeta(self.account_keys[i], is_signer=i < signers, is_writable=self.is_writable(i))
                    for i in compiled.accounts
                ],
                data=compiled.data,
            )
            for compiled in self.instructions
        ]


@dataclass
class SolanaTransaction:
    """
    Complete Solana transaction with signatures and message.

    `signatures` has one slot per required signer, in account-table order.
    Slots nobody signed hold the all-zero default signature.
    """
    signatures: List[Signature]
    message: TransactionMessage

    def sign(self, signer: Signer) -> Signature:
        """
        Sign the message with `signer` and place the signature in its slot.

        Signer errors propagate; signing is attempted exactly once.
        """
        pubkey = signer.public_key()
        try:
            slot = self.message.signer_keys().index(pubkey)
        except ValueError:
            raise ProtocolError(f"{pubkey} is not a required signer of this transaction") from None
        signature = signer.sign(self.message.serialize())
        self.signatures[slot] = signature
        return signature

    def signature(self) -> Signature:
        """The transaction's identifier: the fee payer's signature."""
        if not self.signatures:
            raise ProtocolError("Transaction has no signatures")
        return self.signatures[0]

    def get_fee_payer(self) -> PublicKey:
        """Get the fee payer (always the first signer)."""
        if not self.message.account_keys:
            raise ProtocolError("Transaction has no accounts")
        return self.message.account_keys[0]

    def verify_signatures(self) -> bool:
        """
        Verify all transaction signatures.

        Each required signer must provide a valid Ed25519 signature
        over the serialized message.
        """
        signer_keys = self.message.signer_keys()
        if len(self.signatures) != len(signer_keys):
            return False
        message_data = self.message.serialize()
        return all(
            verify_signature(key, message_data, signature)
            for key, signature in zip(signer_keys, self.signatures)
        )

    def is_signed(self) -> bool:
        default = Signature.default()
        return all(signature != default for signature in self.signatures)

    def serialize(self) -> bytes:
        """Wire format: compact-u16 signature count, signatures, message."""
        parts = [encode_length(len(self.signatures))]
        parts.extend(bytes(signature) for signature in self.signatures)
        parts.append(self.message.serialize())
        return b''.join(parts)


@dataclass
class _KeyFlags:
    is_signer: bool = False
    is_writable: bool = False


class TransactionBuilder:
    """
    Builder for constructing Solana transactions.

    This handles ordering accounts correctly and compiling instructions
    to their binary index form. Instruction order is never changed.
    """

    def __init__(self, fee_payer: PublicKey, recent_blockhash: Optional[Hash] = None):
        """
        Initialize transaction builder.

        Args:
            fee_payer: Account that pays transaction fees (always signs, always writable)
            recent_blockhash: Recent blockhash for replay protection
        """
        self.fee_payer = fee_payer
        self.recent_blockhash = recent_blockhash
        self.instructions: List[Instruction] = []

    def add_instruction(self, instruction: Instruction) -> 'TransactionBuilder':
        """Add an instruction to the transaction (fluent interface)."""
        self.instructions.append(instruction)
        return self

    def add_instructions(self, instructions: List[Instruction]) -> 'TransactionBuilder':
        """Add multiple instructions at once."""
        self.instructions.extend(instructions)
        return self

    def set_recent_blockhash(self, recent_blockhash: Hash) -> 'TransactionBuilder':
        self.recent_blockhash = recent_blockhash
        return self

    def _collect_keys(self) -> Dict[PublicKey, _KeyFlags]:
        # Fee payer, then instruction accounts, then program ids, each in
        # order of first appearance. Flags of repeated keys are OR-merged.
        keys: Dict[PublicKey, _KeyFlags] = {self.fee_payer: _KeyFlags(True, True)}
        for instruction in self.instructions:
            for account in instruction.accounts:
                flags = keys.setdefault(account.pubkey, _KeyFlags())
                flags.is_signer |= account.is_signer
                flags.is_writable |= account.is_writable
        for instruction in self.instructions:
            keys.setdefault(instruction.program_id, _KeyFlags())
        return keys

    def build(self) -> TransactionMessage:
        """
        Build the final transaction message.

        Account table order:
        1. Writable signers (fee payer first)
        2. Readonly signers
        3. Writable non-signers
        4. Readonly non-signers (programs land here unless used otherwise)
        """
        if self.recent_blockhash is None:
            raise ProtocolError("recent blockhash not set")

        keys = self._collect_keys()
        if len(keys) > MAX_ACCOUNT_KEYS:
            raise ProtocolError(
                f"too many account keys: {len(keys)} > {MAX_ACCOUNT_KEYS}"
            )

        groups = {(True, True): [], (True, False): [], (False, True): [], (False, False): []}
        for key, flags in keys.items():
            groups[(flags.is_signer, flags.is_writable)].append(key)

        account_keys = (groups[(True, True)] + groups[(True, False)]
                        + groups[(False, True)] + groups[(False, False)])
        account_index = {key: i for i, key in enumerate(account_keys)}

        header = MessageHeader(
            num_required_signatures=len(groups[(True, True)]) + len(groups[(True, False)]),
            num_readonly_signed_accounts=len(groups[(True, False)]),
            num_readonly_unsigned_accounts=len(groups[(False, False)]),
        )
        if header.num_required_signatures > 0xFF or header.num_readonly_unsigned_accounts > 0xFF:
            raise ProtocolError("account counts do not fit in the message header")

        compiled_instructions = [
            CompiledInstruction(
                program_id_index=account_index[instruction.program_id],
                accounts=[account_index[account.pubkey] for account in instruction.accounts],
                data=bytes(instruction.data),
            )
            for instruction in self.instructions
        ]

        return TransactionMessage(
            header=header,
            account_keys=account_keys,
            recent_blockhash=self.recent_blockhash,
            instructions=compiled_instructions,
        )

    def build_transaction(self) -> SolanaTransaction:
        """Build an unsigned transaction with a default signature per required signer."""
        message = self.build()
        signatures = [Signature.default() for _ in range(message.header.num_required_signatures)]
        return SolanaTransaction(signatures=signatures, message=message)
