"""Tests for string and symbol identifiers."""

import pytest

from graphmodel.identifiers import Symbol, format_identifier, is_identifier, tagged_id


def test_symbols_compare_by_identity() -> None:
    first, second = Symbol("x"), Symbol("x")
    assert first != second
    assert first != "x"
    assert len({first, second, "x"}) == 3


def test_interned_symbols_are_shared() -> None:
    assert Symbol.intern("tests.shared") is Symbol.intern("tests.shared")
    assert Symbol.key_for(Symbol.intern("tests.shared")) == "tests.shared"
    assert Symbol.key_for(Symbol("local")) is None


def test_tagged_ids() -> None:
    assert tagged_id("name") == "S,name"
    assert tagged_id(Symbol.intern("tests.tagged")) == "%,tests.tagged"
    assert tagged_id(Symbol("d")).startswith("@,")
    assert tagged_id(Symbol("d")).endswith(",d")
    with pytest.raises(TypeError):
        tagged_id(5)  # type: ignore[arg-type]


def test_identifier_helpers() -> None:
    assert is_identifier("x")
    assert is_identifier(Symbol())
    assert not is_identifier(1)
    assert format_identifier("x") == "x"
    assert format_identifier(Symbol("y")) == "Symbol(y)"


def test_symbol_node_ids(graph) -> None:
    symbol = Symbol("x")
    by_symbol = graph.nodes.get_or_create(symbol)
    by_string = graph.nodes.get_or_create("x")
    assert by_symbol is not by_string
    assert graph.nodes.get(symbol) is by_symbol
    assert graph.links.get_or_create(symbol, "x").key == (symbol, "x", 0)
