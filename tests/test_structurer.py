import pytest

from yamltree.core.document import parse
from yamltree.core.errors import AnchorError, IndentError, ParseError
from yamltree.core.models import NodeState
from yamltree.parsing.context import ParseContext
from yamltree.parsing.lexer import LineLexer
from yamltree.parsing.structurer import TreeStructurer


def build(text):
    context = ParseContext(source=text, records=LineLexer(text).scan().records)
    TreeStructurer().build(context)
    return context


def test_nested_mappings():
    text = "a:\n  b:\n    c: 1\n  d: 2\ne: 3\n"
    assert parse(text).to_map() == {"a": {"b": {"c": 1}, "d": 2}, "e": 3}


def test_no_node_left_undetermined():
    context = build("a:\n  b:\nc:\n")
    assert all(node.state is not NodeState.UNDETERMINED for node in context.nodes)
    assert context.root.children["a"].state is NodeState.CONTAINER
    assert context.root.children["c"].is_leaf


def test_empty_values_are_null():
    assert parse("a:\nb:\n").to_map() == {"a": None, "b": None}


def test_fatal_dedent_between_ancestor_indents():
    with pytest.raises(IndentError) as excinfo:
        parse("a:\n    b: 1\n  c: 2\n")
    assert excinfo.value.line == 3


def test_content_under_leaf():
    with pytest.raises(IndentError) as excinfo:
        parse("a: 1\n  b: 2\n")
    assert excinfo.value.line == 2


def test_array_entry_inside_mapping():
    with pytest.raises(IndentError):
        parse("a:\n  b:\n    c: 1\n    - d\n")


def test_key_after_root_array():
    with pytest.raises(IndentError):
        parse("- a\nb: 1\n")


def test_compact_sequence_under_key():
    assert parse("items:\n- a\n- b\nnext: 1\n").to_map() == {"items": ["a", "b"], "next": 1}


def test_compact_sequence_of_mappings():
    text = (
        "list:\n"
        "- name: a\n"
        "  val: 1\n"
        "- name: b\n"
        "other: x\n"
    )
    assert parse(text).to_map() == {
        "list": [{"name": "a", "val": 1}, {"name": "b"}],
        "other": "x",
    }


def test_nested_compact_sequence():
    text = "a:\n  b:\n  - x\n  c: 1\n"
    assert parse(text).to_map() == {"a": {"b": ["x"], "c": 1}}


def test_indented_sequence_of_mappings():
    text = (
        "spec:\n"
        "  containers:\n"
        "    - name: web\n"
        "      ports:\n"
        "        - 80\n"
        "        - 443\n"
        "    - name: sidecar\n"
        "  replicas: 2\n"
    )
    assert parse(text).to_map() == {
        "spec": {
            "containers": [{"name": "web", "ports": [80, 443]}, {"name": "sidecar"}],
            "replicas": 2,
        }
    }


def test_nested_arrays():
    assert parse("- - a\n  - b\n- c\n").to_list() == [["a", "b"], "c"]


def test_array_entry_holding_mapping_on_next_line():
    assert parse("-\n  y: 2\n- 3\n").to_list() == [{"y": 2}, 3]


def test_root_indent_may_be_nonzero():
    assert parse("  a:\n    b: 1\n  c: 2\n").to_map() == {"a": {"b": 1}, "c": 2}


def test_duplicate_key_last_wins():
    assert parse("a: 1\na: 2\n").to_map() == {"a": 2}


# -- anchors and aliases -----------------------------------------------------

def test_alias_to_scalar():
    assert parse("a: &x 1\nb: *x\n").to_map() == {"a": 1, "b": 1}


def test_alias_to_mapping_copies_shape():
    doc = parse("base: &b\n  x: 1\ncopy: *b\n")
    copy = doc.get("copy")
    assert copy.is_alias and not copy.is_leaf and not copy.is_array
    assert copy.reference is doc.get("base")
    assert doc.to_map() == {"base": {"x": 1}, "copy": {"x": 1}}


def test_alias_to_array():
    doc = parse("nums: &n\n  - 1\n  - 2\nagain: *n\n")
    assert doc.get("again").is_array
    assert doc.to_map()["again"] == [1, 2]


def test_alias_binds_latest_earlier_anchor():
    text = "a: &x 1\nb: *x\nc: &x 2\nd: *x\n"
    assert parse(text).to_map() == {"a": 1, "b": 1, "c": 2, "d": 2}


def test_forward_alias_is_rejected():
    with pytest.raises(AnchorError) as excinfo:
        parse("a: *x\nb: &x 1\n")
    assert excinfo.value.line == 1


def test_undefined_alias():
    with pytest.raises(AnchorError):
        parse("a: *missing\n")


def test_alias_to_enclosing_anchor():
    with pytest.raises(AnchorError):
        parse("a: &x\n  b: *x\n")


def test_alias_cannot_have_children():
    with pytest.raises(IndentError):
        parse("base: &b\n  x: 1\ncopy: *b\n  y: 2\n")


def test_anchor_scope_is_per_document():
    with pytest.raises(AnchorError) as excinfo:
        parse("a: &x 1\n---\nb: *x\n")
    assert excinfo.value.line == 3


# -- merge keys --------------------------------------------------------------

def test_merge_key():
    text = (
        "base: &b\n"
        "  x: 1\n"
        "child:\n"
        "  <<: *b\n"
        "  y: 2\n"
    )
    assert parse(text).to_map()["child"] == {"x": 1, "y": 2}


def test_merge_explicit_keys_win():
    text = "base: &b\n  x: 1\n  y: 1\nchild:\n  y: 2\n  <<: *b\n"
    assert parse(text).to_map()["child"] == {"y": 2, "x": 1}


def test_merge_list_of_mappings():
    text = (
        "one: &one\n"
        "  x: 1\n"
        "  y: 1\n"
        "two: &two\n"
        "  y: 2\n"
        "  z: 2\n"
        "m:\n"
        "  <<:\n"
        "    - *one\n"
        "    - *two\n"
        "  x: 9\n"
    )
    assert parse(text).to_map()["m"] == {"x": 9, "y": 1, "z": 2}


def test_merge_inline_mapping():
    assert parse("m:\n  <<: {a: 1}\n  b: 2\n").to_map() == {"m": {"a": 1, "b": 2}}


def test_merge_of_scalar_is_rejected():
    with pytest.raises(ParseError) as excinfo:
        parse("a: &a 1\nm:\n  <<: *a\n")
    assert excinfo.value.line == 3


def test_merge_of_set_is_rejected():
    text = "s: &s !!set\n  a:\n  b:\nm:\n  <<: *s\n  c: 1\n"
    with pytest.raises(ParseError) as excinfo:
        parse(text)
    assert excinfo.value.line == 5
