"""
Transaction Document Loader

Reads a YAML file into a tree of DocumentNodes. Nodes know where they sit in
the document and offer uniform typed accessors; they do not know what any
field means. Shape mismatches raise SchemaError with the node's path so the
decoder never has to guess where a problem is.
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from .errors import IoError, ParseError, SchemaError

logger = logging.getLogger(__name__)

_INT_TAG = 'tag:yaml.org,2002:int'
_FLOAT_TAG = 'tag:yaml.org,2002:float'
_TIMESTAMP_TAG = 'tag:yaml.org,2002:timestamp'
_BOOL_TAG = 'tag:yaml.org,2002:bool'


class DocumentLoader(yaml.SafeLoader):
    """
    SafeLoader that leaves numbers and dates as the strings they were written.

    Base58 keys can be all digits (the system program is thirty-two 1s) and
    a one-byte data field reads as an integer; both must reach the decoder as
    text. Only YAML 1.2 booleans (true/false in three casings) resolve;
    `yes`, `no`, `on` and `off` stay strings and fail as flags. Nulls still
    resolve.
    """


DocumentLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers
            if tag not in (_INT_TAG, _FLOAT_TAG, _TIMESTAMP_TAG, _BOOL_TAG)]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}

DocumentLoader.add_implicit_resolver(
    _BOOL_TAG,
    re.compile(r'^(?:true|True|TRUE|false|False|FALSE)$'),
    list('tTfF'),
)


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "sequence"
    if isinstance(value, dict):
        return "mapping"
    return type(value).__name__


class DocumentNode:
    """A node of the parsed document together with its path from the root."""

    def __init__(self, value: Any, path: str = "$"):
        self.value = value
        self.path = path

    def _mismatch(self, expected: str) -> SchemaError:
        return SchemaError(self.path, f"expected {expected}, found {_type_name(self.value)}")

    @property
    def is_null(self) -> bool:
        return self.value is None

    def as_sequence(self) -> List['DocumentNode']:
        if not isinstance(self.value, list):
            raise self._mismatch("a sequence")
        return [DocumentNode(item, f"{self.path}[{i}]") for i, item in enumerate(self.value)]

    def as_mapping(self) -> Dict[str, 'DocumentNode']:
        if not isinstance(self.value, dict):
            raise self._mismatch("a mapping")
        return {str(key): DocumentNode(item, f"{self.path}.{key}") for key, item in self.value.items()}

    def as_string(self) -> str:
        if not isinstance(self.value, str):
            raise self._mismatch("a string")
        return self.value

    def as_bool(self) -> bool:
        if not isinstance(self.value, bool):
            raise self._mismatch("a boolean")
        return self.value

    def get(self, key: str) -> 'DocumentNode':
        """Look up a required key of a mapping node."""
        mapping = self.as_mapping()
        if key not in mapping:
            raise SchemaError(f"{self.path}.{key}", "missing required key")
        return mapping[key]

    def __repr__(self) -> str:
        return f"DocumentNode({self.path}={self.value!r})"


def parse_document(text: str, source: str = "<string>") -> DocumentNode:
    """
    Parse YAML text. Only the first document of a stream is used; an empty
    stream gives a null root.
    """
    try:
        documents = yaml.load_all(text, Loader=DocumentLoader)
        root = next(iter(documents), None)
    except yaml.YAMLError as e:
        raise ParseError(f"{source}: {e}") from e
    return DocumentNode(root)


def load_document(path: Union[str, Path]) -> DocumentNode:
    """Read and parse a transaction document."""
    path = Path(path)
    try:
        text = path.read_text(encoding='utf-8')
    except OSError as e:
        raise IoError(f"could not read {path}: {e.strerror or e}") from e
    except UnicodeDecodeError as e:
        raise ParseError(f"{path}: not UTF-8 text ({e.reason})") from e
    logger.debug("Loaded %d bytes from %s", len(text), path)
    return parse_document(text, source=str(path))
