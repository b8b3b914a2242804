import io
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum

import pytest

from yamltree.core.document import parse, read, read_path
from yamltree.core.errors import TagError


class Protocol(Enum):
    TCP = "tcp"
    UDP = "udp"


MANIFEST = """\
# Service definition
apiVersion: v1
kind: Service
metadata:
  name: web # inline comment
  labels: {app: web, tier: "front end"}
spec:
  ports:
  - name: http
    port: 8080
    protocol: TCP
  - name: metrics
    port: 9090
  selector:
    app: web
"""


def test_plain_scalars_resolve_by_content():
    text = "i: 12\nf: 1.5\nn: ~\nt: true\nF: False\ns: hello world\nh: 0x10\nz: 007\nv: 1.2.3\n"
    assert parse(text).to_map() == {
        "i": 12, "f": 1.5, "n": None, "t": True, "F": False,
        "s": "hello world", "h": 16, "z": 7, "v": "1.2.3",
    }


def test_base_prefix_without_digits_stays_string():
    text = "a: 0x_\nb: 0o__\nc: 0b_\nd: 0x_1F\n"
    assert parse(text).to_map() == {"a": "0x_", "b": "0o__", "c": "0b_", "d": 31}


def test_quoted_scalars_stay_strings():
    assert parse("a: '12'\nb: \"true\"\nc: ''\n").to_map() == {"a": "12", "b": "true", "c": ""}


def test_explicit_tags():
    text = (
        "a: !!int 0x1F\n"
        "b: !!float 3\n"
        "c: !!bool on\n"
        "d: !!str 12\n"
        "e: !!timestamp 2024-01-02\n"
        "f: !!timestamp 2024-01-02T03:04:05Z\n"
        "g: !!binary aGVsbG8=\n"
        "h: !!float .inf\n"
    )
    assert parse(text).to_map() == {
        "a": 31,
        "b": 3.0,
        "c": True,
        "d": "12",
        "e": date(2024, 1, 2),
        "f": datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        "g": "aGVsbG8=",
        "h": float("inf"),
    }


@pytest.mark.parametrize("text", ["a: !!int abc\n", "a: !!bool maybe\n", "a: !!timestamp nope\n"])
def test_uncoercible_tagged_value(text):
    with pytest.raises(TagError) as excinfo:
        parse(text)
    assert excinfo.value.line == 1


def test_set_tag():
    assert parse("s: !!set\n  a:\n  b:\n").to_map() == {"s": {"a", "b"}}


def test_omap_tag():
    text = "o: !!omap\n  - a: 1\n  - b: 2\n"
    assert parse(text).to_map() == {"o": {"a": 1, "b": 2}}


def test_container_tag_on_wrong_shape():
    with pytest.raises(TagError):
        parse("a: !!seq\n  b: 1\n")
    with pytest.raises(TagError):
        parse("a: !!map 5\n")
    with pytest.raises(TagError):
        parse("a: !!int\n  b: 1\n")


def test_empty_tagged_container():
    assert parse("a: !!seq\nb: !!map\n").to_map() == {"a": [], "b": {}}


def test_manifest():
    doc = parse(MANIFEST)
    assert doc.to_map() == {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {"name": "web", "labels": {"app": "web", "tier": "front end"}},
        "spec": {
            "ports": [
                {"name": "http", "port": 8080, "protocol": "TCP"},
                {"name": "metrics", "port": 9090},
            ],
            "selector": {"app": "web"},
        },
    }


def test_path_lookup():
    doc = parse(MANIFEST)
    node = doc.get("spec/ports/[0]/port")
    assert node.value == 8080
    assert node.line == 10
    assert node.path == "spec.ports.[0].port"
    assert doc.root.get("spec/ports/[-1]/name").value == "metrics"
    assert doc.root.get("spec/missing") is None
    assert doc.root.get("spec/ports/[5]") is None
    assert doc.get("spec/ports").get("/kind").value == "Service"
    assert list(doc.get("spec").entries()) == ["ports", "selector"]
    assert [item.get("name").value for item in doc.get("spec/ports").elements()] == ["http", "metrics"]
    assert doc.root.is_root and not node.is_root


def test_path_on_array_requires_index():
    with pytest.raises(ValueError):
        parse(MANIFEST).get("spec/ports/name")


def test_get_value_kind_hints():
    doc = parse(MANIFEST + "created: 2024-05-01\nratio: 0.25\nflag: off\n")
    root = doc.root
    assert root.get_path_value("spec/ports/[0]/port", str) == "8080"
    assert root.get_path_value("spec/ports/[0]/port", float) == 8080.0
    assert root.get_path_value("ratio", Decimal) == Decimal("0.25")
    assert root.get_path_value("flag", bool) is False
    assert root.get_path_value("created", date) == date(2024, 5, 1)
    assert root.get_path_value("created", datetime) == datetime(2024, 5, 1)
    assert root.get_path_value("spec/ports/[0]/protocol", Protocol) is Protocol.TCP
    assert root.get_path_value("nothing", int) is None


def test_set_path_value_is_visible_through_aliases():
    doc = parse("base: &b\n  x: 1\ncopy: *b\nother: *b\n")
    assert doc.root.set_path_value("base/x", 5) is True
    assert doc.to_map() == {"base": {"x": 5}, "copy": {"x": 5}, "other": {"x": 5}}

    assert doc.root.set_path_value("copy/x", 7) is True
    assert doc.get("base/x").value == 7
    assert doc.root.set_path_value("base", 1) is False


def test_container_views_check_shape():
    mapping = parse("a: 1\n")
    array = parse("- 1\n- 2\n")
    assert array.to_list() == [1, 2]
    with pytest.raises(TypeError):
        mapping.to_list()
    with pytest.raises(TypeError):
        array.to_map()


def test_multiple_documents():
    doc = parse("a: 1\n---\nb: 2\n--- # third\n- x\n")
    assert doc.multiple is True
    assert len(doc) == 3
    assert doc.to_map() == {"a": 1}
    assert doc.to_maps() == [{"a": 1}, {"b": 2}, ["x"]]


def test_leading_separator_does_not_add_document():
    doc = parse("---\na: 1\n")
    assert doc.multiple is False
    assert doc.to_map() == {"a": 1}


def test_empty_input():
    doc = parse("# nothing here\n\n")
    assert doc.multiple is False
    assert doc.to_map() == {}


def test_line_numbers_are_global_across_documents():
    doc = parse("a: 1\n---\nb:\n  c: 2\n")
    assert doc.roots[1].get("b/c").line == 4


def test_bytes_chars_and_line_endings():
    expected = {"a": 1, "b": 2}
    assert parse(b"\xef\xbb\xbfa: 1\r\nb: 2\r\n").to_map() == expected
    assert parse(bytearray(b"a: 1\nb: 2")).to_map() == expected
    assert parse(list("a: 1\rb: 2")).to_map() == expected


def test_read_streams(tmp_path):
    assert read(io.StringIO("a: 1\n")).to_map() == {"a": 1}
    assert read(io.BytesIO(b"a: 1\n")).to_map() == {"a": 1}

    target = tmp_path / "doc.yaml"
    target.write_text(MANIFEST, encoding="utf-8")
    assert read_path(target).get("kind").value == "Service"
