"""
sipmeta — unit tests for key extraction and ``@context`` inference

File: tests/unit/domain/test_context.py

Purpose
- Verify that keys are found at every depth and that values are never taken for keys.
- Verify that populated contexts hold exactly the dictionary terms a document uses.

What this test file should cover
- The five-key mixed array example.
- Malformed input: unclosed, mismatched and unexpected delimiters, bad literals.
- Property coverage over generated JSON values.
"""

from __future__ import annotations

import json
from typing import Any

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from sipmeta.constants import MANIFEST_TYPE
from sipmeta.domain.context import MalformedJSONError, TermDefinition, keys, populate
from sipmeta.domain.models import File, Manifest
from sipmeta.domain.vocab import MANIFEST_CONTEXT

_scalars = st.none() | st.booleans() | st.integers() | st.text(max_size=8) | st.floats(
    allow_nan=False, allow_infinity=False
)
_json_values = st.recursive(
    _scalars,
    lambda children: st.lists(children, max_size=4)
    | st.dictionaries(st.text(max_size=6), children, max_size=4),
    max_leaves=20,
)


def _expected_keys(value: Any) -> set[str]:
    found: set[str] = set()
    if isinstance(value, dict):
        for key, item in value.items():
            found.add(key)
            found |= _expected_keys(item)
    elif isinstance(value, list):
        for item in value:
            found |= _expected_keys(item)
    return found


def test_mixed_array_yields_five_keys() -> None:
    document = '[{"apple":"orange","banana":{"carrot":16},"mango":5},"velvet",{"calypso":"crazy"}]'
    assert keys(document) == ["apple", "banana", "calypso", "carrot", "mango"]


def test_values_inside_arrays_are_not_keys() -> None:
    assert keys('{"a":["b",{"c":"d"},["e"]],"f":null}') == ["a", "c", "f"]
    assert keys('"velvet"') == []
    assert keys("123") == []
    assert keys("[]") == []


def test_escaped_and_unicode_keys() -> None:
    assert keys('{"a\\"b":"x","\\u00e9t\\u00e9":1}') == ['a"b', "été"]
    assert keys('{"naïve":true}'.encode()) == ["naïve"]


def test_concatenated_top_level_values_are_accepted() -> None:
    assert keys('{"a":1} {"b":[2]}') == ["a", "b"]


@pytest.mark.parametrize(
    ("document", "message"),
    [
        ('{"a":1', "unclosed"),
        ('{"a":[1}', "mismatched"),
        ('{"a":1]', "mismatched"),
        ("}", "unexpected"),
        ("{1:2}", "keys must be strings"),
        ('{"a":tru}', "unexpected character"),
        ('{"a":"open}', "bad json"),
        ("{{}}", "keys must be strings"),
        ('{"a" "b" "c":1}', "expected ':'"),
        ('{"a":}', "unexpected } delim"),
        ('{"a":1,}', "unexpected } delim"),
        ("[1 2]", "expected ','"),
        ("[,1]", "unexpected ','"),
        ('{"a"::1}', "unexpected ':'"),
        ('[1]:', "unexpected ':'"),
    ],
)
def test_malformed_input_raises(document: str, message: str) -> None:
    with pytest.raises(MalformedJSONError, match=message):
        keys(document)


@settings(max_examples=200, deadline=None)
@given(_json_values)
def test_keys_match_recursive_key_set(value: Any) -> None:
    document = json.dumps(value)
    assert keys(document) == sorted(_expected_keys(value))
    assert keys(json.dumps(value, ensure_ascii=False, indent=2)) == sorted(_expected_keys(value))


@settings(max_examples=150, deadline=None)
@given(
    value=_json_values,
    dictionary=st.dictionaries(st.text(max_size=6), st.text(max_size=10), max_size=8),
)
def test_populate_is_dictionary_intersected_with_keys(
    value: Any, dictionary: dict[str, str]
) -> None:
    original = dict(dictionary)
    context = populate(dictionary, value)
    present = _expected_keys(value)
    assert context == {key: term for key, term in dictionary.items() if key in present}
    assert dictionary == original


def test_populate_manifest_uses_only_serialized_terms() -> None:
    manifest = Manifest()
    manifest.add_version([File(name="a.txt", size=3)])

    context = populate(MANIFEST_CONTEXT, manifest)

    assert set(context) == {"base", "files", "name", "size", "versions"}
    assert context["name"] == MANIFEST_CONTEXT["name"]
    assert isinstance(context["files"], TermDefinition)


def test_serialize_discards_stale_context() -> None:
    manifest = Manifest(context={"bogus": "http://example.org/bogus"})

    payload = json.loads(manifest.serialize())

    assert payload == {"@type": MANIFEST_TYPE, "@context": {}}


def test_term_definition_serializes_without_empty_members() -> None:
    definition = TermDefinition(id="http://example.org/x", type="@id")
    assert definition.to_dict() == {"@id": "http://example.org/x", "@type": "@id"}
    assert TermDefinition(id="http://example.org/y").to_dict() == {"@id": "http://example.org/y"}


def test_invalid_utf8_bytes_are_malformed() -> None:
    with pytest.raises(MalformedJSONError, match="invalid UTF-8"):
        keys(b'{"\xff":1}')
