"""Writing generated documents to disk."""

from __future__ import annotations

import json
import shutil
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Protocol

from ..assembly.constants import DOCUMENT_PATHS, EXTENSIONS_PATH, METADATA_FILENAME
from ..logging import get_logger
from ..models import GeneratedOutput

EXTENSIONS_DOCUMENT = "vscode-extensions"
METADATA_DOCUMENT = "metadata"


class OutputSink(Protocol):
    """Destination for rendered documents."""

    def write(self, name: str, content: str) -> "WrittenFile":
        ...


@dataclass
class WrittenFile:
    """Outcome of writing one document."""

    name: str
    path: Path
    size: int = 0
    existed: bool = False
    backed_up: Optional[Path] = None
    written: bool = False
    error: Optional[str] = None


@dataclass
class WriteSummary:
    """Totals over a batch of written files."""

    total_files: int
    total_size: int
    existing: int
    new: int
    backed_up: int
    failed: int


class FileOutputSink:
    """Writes documents under an output directory at their conventional paths."""

    def __init__(
        self,
        output_dir: Path,
        *,
        overwrite: bool = True,
        backups: bool = False,
        dry_run: bool = False,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.output_dir = output_dir
        self.overwrite = overwrite
        self.backups = backups
        self.dry_run = dry_run
        self.clock = clock or (lambda: datetime.now(UTC))
        self.logger = get_logger("output")

    def path_for(self, name: str) -> Path:
        if name == EXTENSIONS_DOCUMENT:
            return self.output_dir / EXTENSIONS_PATH
        if name == METADATA_DOCUMENT:
            return self.output_dir / METADATA_FILENAME
        return self.output_dir / DOCUMENT_PATHS.get(name, name)

    def write(self, name: str, content: str, *, force: bool = False) -> WrittenFile:
        """Write one document; expected failures are reported, not raised."""
        path = self.path_for(name)
        data = content.encode("utf-8")
        result = WrittenFile(name=name, path=path, size=len(data), existed=path.exists())

        if result.existed and not (self.overwrite or force):
            result.error = f"{path} already exists and overwriting is disabled"
            self.logger.warning(result.error)
            return result
        if self.dry_run:
            self.logger.info("Would write %s (%d bytes)", path, result.size)
            return result

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            if result.existed and self.backups and not force:
                result.backed_up = self._backup(path)
            path.write_bytes(data)
        except OSError as exc:
            result.error = f"Failed to write {path}: {exc}"
            self.logger.warning(result.error)
            return result

        result.written = True
        self.logger.info("Wrote %s", path)
        return result

    def write_output(self, output: GeneratedOutput) -> List[WrittenFile]:
        """Write every document of a generation run plus the metadata sidecar."""
        files: List[WrittenFile] = []
        for name, content in output.documents.items():
            if name == "vscode":
                files.extend(self._write_vscode(content))
            else:
                files.append(self.write(name, content))
        metadata = json.dumps(output.metadata.to_dict(), indent=2) + "\n"
        files.append(self.write(METADATA_DOCUMENT, metadata, force=True))
        return files

    @staticmethod
    def summarize(files: Iterable[WrittenFile]) -> WriteSummary:
        items = list(files)
        return WriteSummary(
            total_files=len(items),
            total_size=sum(item.size for item in items if item.error is None),
            existing=sum(1 for item in items if item.existed),
            new=sum(1 for item in items if not item.existed),
            backed_up=sum(1 for item in items if item.backed_up is not None),
            failed=sum(1 for item in items if item.error is not None),
        )

    def _write_vscode(self, content: str) -> List[WrittenFile]:
        payload = json.loads(content)
        settings: Dict[str, object] = payload.get("settings", {})
        recommendations = payload.get("extensions", {}).get("recommendations", [])
        files = [self.write("vscode", json.dumps(settings, indent=2) + "\n")]
        if recommendations:
            extensions = {"recommendations": recommendations}
            files.append(self.write(EXTENSIONS_DOCUMENT, json.dumps(extensions, indent=2) + "\n"))
        return files

    def _backup(self, path: Path) -> Path:
        stamp = self.clock().strftime("%Y%m%d%H%M%S")
        backup = path.with_name(f"{path.name}.backup.{stamp}")
        shutil.copy2(path, backup)
        self.logger.debug("Backed up %s to %s", path, backup)
        return backup


__all__ = [
    "FileOutputSink",
    "OutputSink",
    "WriteSummary",
    "WrittenFile",
]
