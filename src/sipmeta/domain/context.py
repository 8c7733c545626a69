"""
sipmeta — JSON-LD ``@context`` inference.

File: src/sipmeta/domain/context.py

Purpose
- Discover which object keys occur anywhere in a serialized JSON value.
- Copy only the matching terms from a master dictionary into a document's ``@context``.

Functional requirements
- Keys are found at any nesting depth, inside objects or arrays; string values
  and array elements are never mistaken for keys.
- Malformed input raises ``MalformedJSONError``.

Non-functional requirements
- Single pass over the text; memory grows with nesting depth and the key set,
  not with document size.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from json.decoder import scanstring
from types import MappingProxyType
from typing import ClassVar, Final, NamedTuple

from sipmeta.domain.jsonld import JSONLDModel, JSONScalar, term, to_jsonable

_WHITESPACE: Final[frozenset[str]] = frozenset(" \t\n\r")
_OPEN_DELIMS: Final[frozenset[str]] = frozenset("{[")
_CLOSE_DELIMS: Final[frozenset[str]] = frozenset("}]")
_NUMBER_RE: Final[re.Pattern[str]] = re.compile(r"-?(?:0|[1-9]\d*)(\.\d+)?([eE][-+]?\d+)?")
_LITERALS: Final[dict[str, JSONScalar]] = {"true": True, "false": False, "null": None}

__all__ = [
    "Context",
    "JSONLDDocument",
    "MalformedJSONError",
    "TermDefinition",
    "Token",
    "TokenKind",
    "iter_tokens",
    "keys",
    "populate",
]


class MalformedJSONError(ValueError):
    """Raised when the key extractor meets input that is not well-formed JSON."""


@dataclass(frozen=True, slots=True)
class TermDefinition(JSONLDModel):
    """Structured ``@context`` entry: an IRI plus optional value type and container."""

    id: str = term("@id", omitempty=True, default="")
    type: str = term("@type", omitempty=True, default="")
    container: str = term("@container", omitempty=True, default="")


Context = dict[str, "TermDefinition | str"]


class TokenKind(Enum):
    DELIM = "delim"
    STRING = "string"
    SCALAR = "scalar"


class Token(NamedTuple):
    kind: TokenKind
    value: JSONScalar


class _Expect(Enum):
    """What the tokenizer will accept next."""

    TOP = "top"
    VALUE = "value"
    VALUE_OR_CLOSE = "value or close"
    KEY = "key"
    KEY_OR_CLOSE = "key or close"
    COLON = "colon"
    COMMA_OR_CLOSE = "comma or close"


_KEY_STATES: Final[frozenset[_Expect]] = frozenset({_Expect.KEY, _Expect.KEY_OR_CLOSE})
_VALUE_STATES: Final[frozenset[_Expect]] = frozenset(
    {_Expect.TOP, _Expect.VALUE, _Expect.VALUE_OR_CLOSE}
)
_CLOSE_STATES: Final[frozenset[_Expect]] = frozenset(
    {_Expect.KEY_OR_CLOSE, _Expect.VALUE_OR_CLOSE, _Expect.COMMA_OR_CLOSE}
)


def iter_tokens(document: str | bytes | bytearray) -> Iterator[Token]:
    """Yield delimiter, string and scalar tokens from JSON text.

    ``,`` and ``:`` separators are checked and consumed without producing
    tokens. Any break in object or array structure raises
    ``MalformedJSONError``; complete top-level values may follow each other.
    """

    text = _decode(document)
    # One entry per open container: True for an object, False for an array.
    parents: list[bool] = []
    expect = _Expect.TOP
    pos = 0
    end = len(text)

    def after_value() -> _Expect:
        return _Expect.COMMA_OR_CLOSE if parents else _Expect.TOP

    while pos < end:
        char = text[pos]
        if char in _WHITESPACE:
            pos += 1
            continue
        if char == ",":
            if expect is not _Expect.COMMA_OR_CLOSE:
                raise MalformedJSONError(f"bad json: unexpected ',' at offset {pos}")
            expect = _Expect.KEY if parents[-1] else _Expect.VALUE
            pos += 1
            continue
        if char == ":":
            if expect is not _Expect.COLON:
                raise MalformedJSONError(f"bad json: unexpected ':' at offset {pos}")
            expect = _Expect.VALUE
            pos += 1
            continue
        if char in _OPEN_DELIMS:
            if expect in _KEY_STATES:
                raise MalformedJSONError(f"bad json: keys must be strings, got {char!r}")
            if expect not in _VALUE_STATES:
                raise MalformedJSONError(f"bad json: expected ',' or ':' before offset {pos}")
            parents.append(char == "{")
            expect = _Expect.KEY_OR_CLOSE if char == "{" else _Expect.VALUE_OR_CLOSE
            yield Token(TokenKind.DELIM, char)
            pos += 1
            continue
        if char in _CLOSE_DELIMS:
            if not parents:
                raise MalformedJSONError(f"bad json: unexpected {char} delim")
            if parents[-1] != (char == "}"):
                raise MalformedJSONError(f"bad json: mismatched {char} delim")
            if expect not in _CLOSE_STATES:
                raise MalformedJSONError(f"bad json: unexpected {char} delim at offset {pos}")
            parents.pop()
            expect = after_value()
            yield Token(TokenKind.DELIM, char)
            pos += 1
            continue

        if char == '"':
            try:
                value, next_pos = scanstring(text, pos + 1, True)
            except json.JSONDecodeError as exc:
                raise MalformedJSONError(f"bad json: {exc.msg} at offset {exc.pos}") from exc
            token = Token(TokenKind.STRING, value)
        else:
            token, next_pos = _scalar_at(text, pos)

        if expect in _KEY_STATES:
            if token.kind is not TokenKind.STRING:
                raise MalformedJSONError("bad json: keys must be strings")
            expect = _Expect.COLON
        elif expect is _Expect.COLON:
            raise MalformedJSONError(f"bad json: expected ':' at offset {pos}")
        elif expect is _Expect.COMMA_OR_CLOSE:
            raise MalformedJSONError(f"bad json: expected ',' at offset {pos}")
        else:
            expect = after_value()
        yield token
        pos = next_pos

    if parents:
        raise MalformedJSONError(f"bad json: {len(parents)} unclosed delim(s) at end of input")


def _decode(document: str | bytes | bytearray) -> str:
    if not isinstance(document, (bytes, bytearray)):
        return document
    try:
        return document.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedJSONError(f"bad json: invalid UTF-8 at offset {exc.start}") from exc


def _scalar_at(text: str, pos: int) -> tuple[Token, int]:
    match = _NUMBER_RE.match(text, pos)
    if match is not None:
        raw = match.group(0)
        number: JSONScalar = float(raw) if match.group(1) or match.group(2) else int(raw)
        return Token(TokenKind.SCALAR, number), match.end()
    for literal, literal_value in _LITERALS.items():
        if text.startswith(literal, pos):
            return Token(TokenKind.SCALAR, literal_value), pos + len(literal)
    raise MalformedJSONError(f"bad json: unexpected character {text[pos]!r} at offset {pos}")


def keys(document: str | bytes | bytearray) -> list[str]:
    """Return the sorted, de-duplicated object keys found anywhere in ``document``."""

    found: set[str] = set()
    parents: list[bool] = []
    expecting_key = False

    for token in iter_tokens(document):
        if token.kind is TokenKind.DELIM:
            if token.value in _OPEN_DELIMS:
                parents.append(token.value == "{")
            else:
                parents.pop()
            expecting_key = bool(parents) and parents[-1]
            continue

        if expecting_key:
            found.add(str(token.value))
            expecting_key = False
        elif parents and parents[-1]:
            expecting_key = True

    return sorted(found)


def populate(dictionary: Mapping[str, TermDefinition | str], value: object) -> Context:
    """Infer the ``@context`` for ``value`` from a master term dictionary.

    ``value`` is serialized first, so only terms that survive serialization
    (non-empty fields) end up in the result. The dictionary is not modified.
    """

    serialized = json.dumps(to_jsonable(value), ensure_ascii=False)
    context: Context = {}
    for key in keys(serialized):
        definition = dictionary.get(key)
        if definition is not None:
            context[key] = definition
    return context


class JSONLDDocument(JSONLDModel):
    """Mixin for top-level documents that carry their own ``@context``.

    Subclasses are dataclasses declaring a ``context`` field and a ``terms``
    class variable holding their master dictionary.
    """

    terms: ClassVar[Mapping[str, TermDefinition | str]] = MappingProxyType({})
    context: Context | None

    def populate_context(self) -> Context:
        # A stale context would otherwise leak its own keys into the scan.
        self.context = None
        self.context = populate(self.terms, self)
        return self.context

    def serialize(self) -> str:
        """Populate ``@context`` for the document as it stands and return its JSON text."""

        self.populate_context()
        return self.to_json()
