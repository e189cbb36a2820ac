#!/usr/bin/env python3
"""
soltx - send a hand-written Solana transaction

Reads a YAML list of instructions, signs it with the configured keypair as
fee payer, submits it without preflight and waits for `confirmed`
commitment.

Usage:
    soltx tx.yml                              # Use the Solana CLI config
    soltx tx.yml --keypair ~/dev.json         # Override the fee payer
    soltx tx.yml -u http://localhost:8899     # Override the RPC endpoint
    soltx tx.yml -C ./config.yml -v           # Other config, debug logging

Output:
    stdout  the signature list (right after signing), then the signature
    stderr  `error: <context>: <cause>` on failure, exit status 1
"""

import argparse
import logging
import sys
from typing import List, Optional

from .core.config import CliConfig, default_config_file
from .core.decoder import decode_instructions
from .core.document import load_document
from .core.errors import SoltxError
from .core.keys import Signature
from .core.rpc import Commitment, RpcClient
from .core.signers import Signer, signer_from_path
from .core.submission import send_transaction
from .core.transactions import SolanaTransaction

logger = logging.getLogger(__name__)


class StageError(Exception):
    """A SoltxError tagged with the stage it came from, for the error line."""

    def __init__(self, context: str, cause: Exception):
        self.context = context
        self.cause = cause
        super().__init__(f"{context}: {cause}")


class SoltxCLI:
    """
    Wires config, signer, document and chain client together for one run.
    """

    def __init__(self, config: CliConfig, keypair: Optional[str] = None, url: Optional[str] = None):
        self.config = config
        self.keypair_path = keypair or config.keypair_path
        self.json_rpc_url = url or config.json_rpc_url
        self.commitment = Commitment.CONFIRMED
        self.pending_signature: Optional[Signature] = None
        if config.commitment != self.commitment.value:
            logger.debug("Ignoring config commitment %r; always waiting for %s",
                         config.commitment, self.commitment.value)

    def load_signer(self) -> Signer:
        try:
            return signer_from_path(self.keypair_path)
        except SoltxError as e:
            raise StageError("loading signer", e) from e

    def print_signatures(self, transaction: SolanaTransaction):
        """Show every signature slot before the confirmation wait starts."""
        self.pending_signature = transaction.signature()
        print(f"[{', '.join(str(s) for s in transaction.signatures)}]", flush=True)

    def send(self, path: str) -> Signature:
        """Run the whole pipeline for the document at `path`."""
        signer = self.load_signer()
        logger.debug("Fee payer %s", signer.public_key())

        try:
            document = load_document(path)
        except SoltxError as e:
            raise StageError("reading transaction file", e) from e
        logger.debug("LOADED %s", path)

        try:
            instructions = decode_instructions(document)
        except SoltxError as e:
            raise StageError("decoding transaction", e) from e
        logger.debug("DECODED %d instruction(s)", len(instructions))

        client = RpcClient(self.json_rpc_url)
        try:
            return send_transaction(
                instructions, signer, client,
                commitment=self.commitment,
                on_signed=self.print_signatures,
            )
        except SoltxError as e:
            raise StageError("sending transaction", e) from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="soltx",
        description="Sign and send a Solana transaction described in a YAML file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
File format:
  - programId: <base58 public key>
    accounts:
      - key: <base58 public key>
        isSigner: <true|false>
        isWritable: <true|false>
    data: "<u8>,<u8>,...,<u8>"

Transactions are sent with preflight checks skipped: a transaction the
cluster rejects still costs its fee.
        """
    )
    parser.add_argument('file', metavar='FILE', help='Transaction document (YAML)')
    parser.add_argument('-C', '--config', dest='config_file', metavar='CONFIG_PATH',
                        default=default_config_file(), help='Configuration file to use')
    parser.add_argument('--keypair', metavar='KEYPAIR',
                        help='Filepath or URL to a keypair (usb:// not supported) [default: client keypair]')
    parser.add_argument('-u', '--url', dest='json_rpc_url', metavar='URL',
                        help='JSON RPC URL for the cluster [default: value from configuration file]')
    parser.add_argument('-v', '--verbose', action='store_true', help='Show debug logging')
    return parser


def setup_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    config = CliConfig.load(args.config_file) if args.config_file else CliConfig()
    cli = SoltxCLI(config, keypair=args.keypair, url=args.json_rpc_url)

    try:
        signature = cli.send(args.file)
    except StageError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        if cli.pending_signature is not None:
            print(f"error: interrupted while waiting for confirmation; "
                  f"transaction {cli.pending_signature} may still land", file=sys.stderr)
        else:
            print("error: interrupted", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(signature)
    return 0


if __name__ == '__main__':
    sys.exit(main())
