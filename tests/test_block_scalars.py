import pytest

from yamltree.core.document import parse
from yamltree.core.errors import BlockScalarError
from yamltree.core.models import Chomping
from yamltree.parsing.block import BlockScalarReader


@pytest.mark.parametrize("header, expected", [
    ("|+", "x\ny\n\n"),
    ("|-", "x\ny"),
    ("|", "x\ny\n"),
])
def test_chomping(header, expected):
    text = f"a: {header}\n  x\n  y\n\n"
    assert parse(text).to_map() == {"a": expected}


def test_folding_joins_lines_with_space():
    assert parse("a: >\n  x\n  y\n").to_map() == {"a": "x y\n"}


def test_folding_blank_line_adds_a_space():
    assert parse("a: >-\n  x\n\n  y\n").to_map() == {"a": "x  y"}
    assert parse("a: >\n  x\n\n\n  y\n").to_map() == {"a": "x   y\n"}


def test_literal_keeps_interior_blank_lines_and_extra_indent():
    text = "script: |\n  if x:\n      run()\n\n  done\nnext: 1\n"
    assert parse(text).to_map() == {"script": "if x:\n    run()\n\ndone\n", "next": 1}


def test_block_ends_at_sibling_key():
    doc = parse("a: |\n  x\nb: 1\n")
    assert doc.to_map() == {"a": "x\n", "b": 1}
    assert doc.get("b").line == 3


def test_block_in_array():
    assert parse("- |\n  x\n- y\n").to_list() == ["x\n", "y"]


def test_empty_block():
    assert parse("a: |\nb: 1\n").to_map() == {"a": "", "b": 1}


def test_block_node_flags():
    node = parse("a: >+\n  x\n").get("a")
    assert node.is_text_block and node.is_folded
    assert node.chomping is Chomping.KEEP


def test_header_with_comment():
    assert parse("a: | # literal\n  x\n").to_map() == {"a": "x\n"}


def test_malformed_header():
    with pytest.raises(BlockScalarError) as excinfo:
        parse("a: |x\n  y\n")
    assert excinfo.value.line == 1


def test_line_shallower_than_content_indent():
    with pytest.raises(BlockScalarError) as excinfo:
        parse("a: |\n    x\n  y\n")
    assert excinfo.value.line == 3


def test_reader_reports_resume_position():
    source = "a: |\n  x\nb: 1\n"
    block = BlockScalarReader(source).read(3, 0, 1, 0)
    assert block.value == "x\n"
    assert block.next_line == 3
    assert source[block.next_offset:].startswith("b: 1")
