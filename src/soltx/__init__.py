"""
soltx - hand-crafted Solana transactions from YAML

Describe a transaction as a list of instructions in a YAML file; soltx signs
it with your keypair as fee payer, sends it to a cluster over JSON-RPC and
prints the signature once the cluster reports it confirmed.

Key pieces:
- Document loading and strict instruction decoding
- Legacy message compilation and wire encoding
- Ed25519 signing through a pluggable Signer
- JSON-RPC submission with a fixed no-preflight policy
"""

__version__ = "0.1.0"

from .core import *
from .soltx_cli import SoltxCLI, main

__all__ = [
    # Pipeline
    'load_document',
    'decode_instructions',
    'assemble_transaction',
    'send_transaction',
    'submit_transaction',

    # Model
    'PublicKey',
    'Hash',
    'Signature',
    'AccountMeta',
    'Instruction',
    'SolanaTransaction',
    'TransactionBuilder',

    # Collaborators
    'Signer',
    'Keypair',
    'ChainClient',
    'RpcClient',

    # Application
    'SoltxCLI',
    'main',
]
