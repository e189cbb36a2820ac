"""
Error Taxonomy

Every failure the pipeline can hit maps to one of these kinds. None of them
is recovered inside the core: they travel up to the CLI, which prints
`error: <context>: <cause>` and exits with status 1.
"""

from typing import Optional


class SoltxError(Exception):
    """Base class for all errors raised by soltx."""


class IoError(SoltxError):
    """The transaction document could not be read."""


class ParseError(SoltxError):
    """The transaction document is not well-formed YAML."""


class SchemaError(SoltxError):
    """
    A document node has the wrong shape or fails domain decoding.

    `path` locates the offending node (e.g. `$[0].accounts[1].isSigner`)
    and `kind` says what was wrong with it.
    """

    def __init__(self, path: str, kind: str):
        self.path = path
        self.kind = kind
        super().__init__(f"{path}: {kind}")


class EmptyDocument(SchemaError):
    """The top level of the document is not a sequence of instructions."""

    def __init__(self, path: str = "$", kind: str = "expected a sequence of instructions"):
        super().__init__(path, kind)


class SignerError(SoltxError):
    """The signer could not be loaded or refused to sign."""


class RpcError(SoltxError):
    """
    A chain client call failed.

    JSON-RPC error objects are kept verbatim in `code` and `data`.
    """

    def __init__(self, message: str, code: Optional[int] = None, data=None):
        self.code = code
        self.data = data
        super().__init__(message)


class ProtocolError(SoltxError):
    """The transaction cannot be encoded in the wire format."""
