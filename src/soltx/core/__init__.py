"""
soltx core: everything between a YAML file and a confirmed signature.
"""

from .errors import (
    SoltxError,
    IoError,
    ParseError,
    SchemaError,
    EmptyDocument,
    SignerError,
    RpcError,
    ProtocolError,
)
from .keys import PublicKey, Hash, Signature, SYSTEM_PROGRAM_ID
from .accounts import AccountMeta
from .signers import Signer, Keypair, signer_from_path, read_keypair_file, verify_signature
from .transactions import (
    SolanaTransaction,
    TransactionMessage,
    MessageHeader,
    CompiledInstruction,
    Instruction,
    TransactionBuilder
)
from .document import DocumentNode, load_document, parse_document
from .decoder import decode_instructions
from .assembler import assemble_transaction
from .rpc import ChainClient, RpcClient, Commitment, SendTransactionConfig, FeeCalculator
from .submission import DEFAULT_SEND_CONFIG, DEFAULT_COMMITMENT, send_transaction, submit_transaction
from .config import CliConfig

__all__ = [
    'SoltxError', 'IoError', 'ParseError', 'SchemaError', 'EmptyDocument',
    'SignerError', 'RpcError', 'ProtocolError',
    'PublicKey', 'Hash', 'Signature', 'SYSTEM_PROGRAM_ID',
    'AccountMeta',
    'Signer', 'Keypair', 'signer_from_path', 'read_keypair_file', 'verify_signature',
    'SolanaTransaction', 'TransactionMessage', 'MessageHeader',
    'CompiledInstruction', 'Instruction', 'TransactionBuilder',
    'DocumentNode', 'load_document', 'parse_document',
    'decode_instructions',
    'assemble_transaction',
    'ChainClient', 'RpcClient', 'Commitment', 'SendTransactionConfig', 'FeeCalculator',
    'DEFAULT_SEND_CONFIG', 'DEFAULT_COMMITMENT', 'send_transaction', 'submit_transaction',
    'CliConfig',
]
