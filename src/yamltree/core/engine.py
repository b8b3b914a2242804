#!/usr/bin/env python3
"""
YAMLTREE ENGINE - Bulk Orchestrator
-----------------------------------
Parses many files inside a workspace, each one independently. Failures are
folded into per-file report dicts instead of aborting the batch. Optional
normalization re-serializes files through the exporter with atomic
persistence and a backup of the original.
"""

import logging
import os
import shutil
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from yamltree.core.document import parse
from yamltree.core.errors import YamlTreeError
from yamltree.parsing.exporter import YamlExporter
from yamltree.validator.validator import ReferenceValidator

logger = logging.getLogger("yamltree.engine")

BACKUP_SUFFIX = ".yamltree.backup"
TEMP_SUFFIX = ".yamltree.tmp"


class ParseEngine:
    """
    Maintains workspace state and runs the parser over single files or
    whole directory trees, with safety gates for recursion depth and
    atomic write operations.
    """

    def __init__(self, workspace_path: str, extension: str = ".yaml", max_depth: int = 10,
                 cross_check: bool = False, exporter: Optional[YamlExporter] = None):
        self.workspace = Path(workspace_path).resolve()
        self.extension = extension
        self.max_depth = max_depth
        self.cross_check = cross_check
        self.exporter = exporter or YamlExporter(line_terminator="\n")
        self.validator = ReferenceValidator()
        self._ensure_workspace()

    def _ensure_workspace(self):
        """Validates/Creates target workspace to prevent OS path errors."""
        if not self.workspace.exists():
            logger.info(f"Creating missing workspace: {self.workspace}")
            self.workspace.mkdir(parents=True, exist_ok=True)

    def parse_file(self, relative_path: str, dry_run: bool = True, normalize: bool = False) -> Dict[str, Any]:
        """
        Parses a single file and returns its report.
        With normalize=True the re-serialized text is reported, and written
        back to disk when dry_run is False.
        """
        full_path = (self.workspace / relative_path).resolve()
        if not full_path.exists():
            return self._file_error(relative_path, "FILE_NOT_FOUND", f"Path missing: {full_path}")

        try:
            raw_text = full_path.read_text(encoding="utf-8-sig")
            document = parse(raw_text)
        except YamlTreeError as e:
            logger.error(f"Error parsing {relative_path}: {e}")
            return self._file_error(relative_path, "PARSE_ERROR", e.message, e.line)
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error reading {relative_path}: {e}")
            return self._file_error(relative_path, "READ_ERROR", str(e))

        result = {
            "file_path": str(relative_path),
            "success": True,
            "status": "OK",
            "documents": len(document.roots),
            "multiple": document.multiple,
            "error": None,
            "line": None,
            "normalized_content": None,
            "written": False,
            "backup_created": None,
            "cross_check": None,
            "timestamp": time.time(),
        }

        if self.cross_check:
            ok, message = self.validator.compare(raw_text, document)
            result["cross_check"] = message
            if not ok:
                result["success"] = False
                result["status"] = "MISMATCH"

        if not normalize:
            return result

        normalized = self.exporter.export(document)
        is_modified = raw_text != normalized
        result["normalized_content"] = normalized if is_modified else None
        result["status"] = self._derive_status(is_modified, dry_run, result["status"])

        # Execution (Disk I/O)
        if not dry_run and is_modified:
            backup_path = self._create_unique_backup(full_path)
            try:
                shutil.copy2(full_path, backup_path)
                result["backup_created"] = str(backup_path.relative_to(self.workspace))
            except OSError as e:
                result["backup_warning"] = f"Backup failed: {e}"

            try:
                self._atomic_write(full_path, normalized)
                result["written"] = True
                logger.info(f"Normalized {relative_path}")
            except IOError as e:
                result["write_error"] = str(e)
                result["success"] = False
                result["status"] = "WRITE_ERROR"

        return result

    def scan_directory(self, dry_run: bool = True, normalize: bool = False,
                       progress_callback: Optional[Callable[[int, int], None]] = None) -> List[Dict[str, Any]]:
        """
        Recursively discovers and parses all matching files, one at a time.
        Symlinks are skipped; files deeper than max_depth are ignored.
        """
        try:
            max_depth = int(self.max_depth)
        except (ValueError, TypeError):
            logger.warning(f"Invalid max_depth '{self.max_depth}'. Falling back to default: 10")
            max_depth = 10

        patterns = {f"*{self.extension.lower()}", f"*{self.extension.upper()}"}
        all_files = sorted({
            f for p in patterns for f in self.workspace.rglob(p) if f.is_file() and not f.is_symlink()
        })
        all_files = [f for f in all_files if len(f.relative_to(self.workspace).parts) <= max_depth]

        reports = []
        total_files = len(all_files)
        for processed, file_path in enumerate(all_files, start=1):
            rel_path = str(file_path.relative_to(self.workspace))
            reports.append(self.parse_file(rel_path, dry_run=dry_run, normalize=normalize))
            if progress_callback:
                progress_callback(processed, total_files)

        return reports

    def cleanup_backups(self, max_age_hours: int = 168) -> int:
        """Removes old backup files (default 7 days)."""
        count = 0
        cutoff = time.time() - (max_age_hours * 3600)
        for backup in self.workspace.rglob(f"*{BACKUP_SUFFIX}"):
            try:
                if backup.stat().st_mtime < cutoff:
                    backup.unlink()
                    count += 1
            except OSError:
                continue
        return count

    def generate_summary(self, reports: List[Dict[str, Any]]) -> Dict[str, Any]:
        if not reports:
            return {
                "total_files": 0, "success_rate": 0, "successful": 0,
                "parse_errors": 0, "documents": 0, "written_to_disk": 0, "backups_created": 0,
            }

        total = len(reports)
        successful = sum(1 for r in reports if r.get("success", False))
        return {
            "total_files": total,
            "success_rate": successful / total,
            "successful": successful,
            "parse_errors": sum(1 for r in reports if r.get("status") == "PARSE_ERROR"),
            "documents": sum(r.get("documents", 0) for r in reports),
            "written_to_disk": sum(1 for r in reports if r.get("written", False)),
            "backups_created": sum(1 for r in reports if r.get("backup_created") is not None),
            "summary_timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
        }

    @staticmethod
    def _derive_status(modified: bool, dry: bool, current: str) -> str:
        if current != "OK":
            return current
        if not modified:
            return "UNCHANGED"
        return "PREVIEW" if dry else "NORMALIZED"

    def _atomic_write(self, target_path: Path, content: str):
        if not os.access(target_path.parent, os.W_OK):
            raise PermissionError(f"No write access to {target_path.parent}")
        temp_file = target_path.with_name(target_path.name + TEMP_SUFFIX)
        try:
            with open(temp_file, "w", encoding="utf-8", newline="") as f:
                f.write(content)
            os.replace(temp_file, target_path)
        except OSError as e:
            if temp_file.exists():
                temp_file.unlink()
            raise IOError(f"Atomic write failed: {e}")

    def _create_unique_backup(self, target_path: Path) -> Path:
        backup_path = target_path.with_name(target_path.name + BACKUP_SUFFIX)
        counter = 1
        while backup_path.exists():
            backup_path = target_path.with_name(f"{target_path.name}-{counter}{BACKUP_SUFFIX}")
            counter += 1
        return backup_path

    def _file_error(self, path: str, status: str, error: str, line: Optional[int] = None) -> Dict[str, Any]:
        return {
            "file_path": str(path), "status": status, "error": error, "line": line,
            "success": False, "documents": 0, "multiple": False, "written": False,
            "backup_created": None, "normalized_content": None, "cross_check": None,
        }
