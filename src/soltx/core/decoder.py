"""
Instruction Decoder

Turns a parsed transaction document into typed instructions:

    - programId: <base58 public key>
      accounts:
        - key: <base58 public key>
          isSigner: <true|false>
          isWritable: <true|false>
      data: "<u8>,<u8>,...,<u8>"

All keys are required and unknown keys are ignored. Every failure is a
SchemaError naming the path of the offending node.
"""

import re
from typing import List

from .accounts import AccountMeta
from .document import DocumentNode
from .errors import EmptyDocument, SchemaError
from .keys import PublicKey
from .transactions import Instruction

_BYTE = re.compile(r'[0-9]+')


def decode_pubkey(node: DocumentNode) -> PublicKey:
    text = node.as_string()
    try:
        return PublicKey.from_string(text)
    except ValueError as e:
        raise SchemaError(node.path, f"invalid public key: {e}") from e


def decode_data(node: DocumentNode) -> bytes:
    """
    Parse a comma-separated list of decimal bytes.

    Strict on purpose: digits only, no signs, no whitespace, no empty
    elements, every value in [0, 255]. The empty string is zero bytes.
    """
    text = node.as_string()
    if text == "":
        return b""
    data = bytearray()
    for i, item in enumerate(text.split(',')):
        if not _BYTE.fullmatch(item):
            raise SchemaError(node.path, f"byte {i} is not a decimal integer: {item!r}")
        # More than three significant digits can never be a byte
        if len(item.lstrip('0')) > 3:
            raise SchemaError(node.path, f"byte {i} out of range [0, 255]: {item[:16]}...")
        value = int(item)
        if value > 255:
            raise SchemaError(node.path, f"byte {i} out of range [0, 255]: {value}")
        data.append(value)
    return bytes(data)


def decode_account_meta(node: DocumentNode) -> AccountMeta:
    return AccountMeta(
        pubkey=decode_pubkey(node.get('key')),
        is_signer=node.get('isSigner').as_bool(),
        is_writable=node.get('isWritable').as_bool(),
    )


def decode_instruction(node: DocumentNode) -> Instruction:
    return Instruction(
        program_id=decode_pubkey(node.get('programId')),
        accounts=[decode_account_meta(account) for account in node.get('accounts').as_sequence()],
        data=decode_data(node.get('data')),
    )


def decode_instructions(root: DocumentNode) -> List[Instruction]:
    """
    Decode the whole document, preserving instruction order.

    A missing or non-sequence top level is an EmptyDocument error; an
    empty sequence is a valid, empty instruction list.
    """
    if not isinstance(root.value, list):
        raise EmptyDocument(root.path)
    return [decode_instruction(node) for node in root.as_sequence()]
