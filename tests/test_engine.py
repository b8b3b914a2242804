import os
import time

import pytest

from yamltree.core.engine import BACKUP_SUFFIX, ParseEngine

MESSY = "a:    1\nb:\n    - x\n    - y   # note\n"
NORMALIZED = "a: 1\nb:\n  - 'x'\n  - 'y'\n"


@pytest.fixture
def workspace(tmp_path):
    (tmp_path / "good.yaml").write_text("name: web\nports: [80, 443]\n", encoding="utf-8")
    (tmp_path / "bad.yaml").write_text("a: 1\nb: *nowhere\n", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("not yaml at all", encoding="utf-8")
    nested = tmp_path / "sub"
    nested.mkdir()
    (nested / "multi.yaml").write_text("a: 1\n---\nb: 2\n", encoding="utf-8")
    return tmp_path


def test_parse_file_success(workspace):
    report = ParseEngine(str(workspace)).parse_file("good.yaml")
    assert report["success"] is True
    assert report["status"] == "OK"
    assert report["documents"] == 1
    assert report["multiple"] is False
    assert report["written"] is False


def test_parse_error_is_folded_into_report(workspace):
    report = ParseEngine(str(workspace)).parse_file("bad.yaml")
    assert report["success"] is False
    assert report["status"] == "PARSE_ERROR"
    assert report["line"] == 2
    assert "nowhere" in report["error"]


def test_missing_file(workspace):
    report = ParseEngine(str(workspace)).parse_file("ghost.yaml")
    assert report["status"] == "FILE_NOT_FOUND"
    assert report["success"] is False


def test_workspace_is_created(tmp_path):
    target = tmp_path / "new" / "dir"
    ParseEngine(str(target))
    assert target.is_dir()


def test_normalize_dry_run_leaves_file(tmp_path):
    path = tmp_path / "messy.yaml"
    path.write_text(MESSY, encoding="utf-8")

    report = ParseEngine(str(tmp_path)).parse_file("messy.yaml", dry_run=True, normalize=True)
    assert report["status"] == "PREVIEW"
    assert report["normalized_content"] == NORMALIZED
    assert path.read_text(encoding="utf-8") == MESSY


def test_normalize_writes_with_backup(tmp_path):
    path = tmp_path / "messy.yaml"
    path.write_text(MESSY, encoding="utf-8")

    report = ParseEngine(str(tmp_path)).parse_file("messy.yaml", dry_run=False, normalize=True)
    assert report["written"] is True
    assert report["status"] == "NORMALIZED"
    assert report["backup_created"] == "messy.yaml" + BACKUP_SUFFIX
    assert path.read_text(encoding="utf-8") == NORMALIZED
    assert (tmp_path / report["backup_created"]).read_text(encoding="utf-8") == MESSY

    # A second run finds nothing to change
    again = ParseEngine(str(tmp_path)).parse_file("messy.yaml", dry_run=False, normalize=True)
    assert again["status"] == "UNCHANGED"
    assert again["written"] is False


def test_backups_get_unique_names(tmp_path):
    path = tmp_path / "messy.yaml"
    engine = ParseEngine(str(tmp_path))
    path.write_text(MESSY, encoding="utf-8")
    engine.parse_file("messy.yaml", dry_run=False, normalize=True)
    path.write_text(MESSY, encoding="utf-8")
    report = engine.parse_file("messy.yaml", dry_run=False, normalize=True)
    assert report["backup_created"] == "messy.yaml-1" + BACKUP_SUFFIX


def test_scan_directory_and_summary(workspace):
    engine = ParseEngine(str(workspace))
    seen = []
    reports = engine.scan_directory(progress_callback=lambda done, total: seen.append((done, total)))

    by_path = {r["file_path"]: r for r in reports}
    assert set(by_path) == {"bad.yaml", "good.yaml", os.path.join("sub", "multi.yaml")}
    assert by_path[os.path.join("sub", "multi.yaml")]["multiple"] is True
    assert seen[-1] == (3, 3)

    summary = engine.generate_summary(reports)
    assert summary["total_files"] == 3
    assert summary["successful"] == 2
    assert summary["parse_errors"] == 1
    assert summary["documents"] == 3


def test_scan_respects_max_depth(workspace):
    reports = ParseEngine(str(workspace), max_depth=1).scan_directory()
    assert {r["file_path"] for r in reports} == {"bad.yaml", "good.yaml"}


def test_empty_summary(tmp_path):
    assert ParseEngine(str(tmp_path)).generate_summary([])["total_files"] == 0


def test_cross_check(workspace):
    report = ParseEngine(str(workspace), cross_check=True).parse_file("good.yaml")
    assert report["success"] is True
    assert report["cross_check"].startswith("Both parsers agree")


def test_cleanup_backups(tmp_path):
    old = tmp_path / ("a.yaml" + BACKUP_SUFFIX)
    fresh = tmp_path / ("b.yaml" + BACKUP_SUFFIX)
    old.write_text("a: 1\n", encoding="utf-8")
    fresh.write_text("b: 1\n", encoding="utf-8")
    stale = time.time() - 10 * 24 * 3600
    os.utime(old, (stale, stale))

    assert ParseEngine(str(tmp_path)).cleanup_backups() == 1
    assert not old.exists()
    assert fresh.exists()
