"""Tests for writing generated documents."""

from __future__ import annotations

import json
from pathlib import Path

from airules.configuration import ProjectConfiguration
from airules.models import GeneratedOutput, GenerationMetadata
from airules.output import FileOutputSink


def _output(fixed_clock, documents: dict[str, str]) -> GeneratedOutput:
    metadata = GenerationMetadata(
        applied_content_ids=("tdd",),
        generated_at=fixed_clock(),
        source_configuration=ProjectConfiguration(),
    )
    return GeneratedOutput(documents=documents, metadata=metadata)


def test_write_creates_parent_directories(tmp_path: Path) -> None:
    sink = FileOutputSink(tmp_path)

    result = sink.write("copilot", "# Copilot\n")

    assert result.written
    assert result.path == tmp_path / ".github" / "copilot-instructions.md"
    assert result.path.read_text(encoding="utf-8") == "# Copilot\n"
    assert result.size == len("# Copilot\n")
    assert not result.existed


def test_existing_file_is_kept_when_overwrite_disabled(tmp_path: Path) -> None:
    (tmp_path / "CLAUDE.md").write_text("original", encoding="utf-8")
    sink = FileOutputSink(tmp_path, overwrite=False)

    result = sink.write("claude", "replacement")

    assert not result.written
    assert "already exists" in (result.error or "")
    assert (tmp_path / "CLAUDE.md").read_text(encoding="utf-8") == "original"


def test_backup_is_taken_before_overwriting(tmp_path: Path, fixed_clock) -> None:
    (tmp_path / "CLAUDE.md").write_text("original", encoding="utf-8")
    sink = FileOutputSink(tmp_path, backups=True, clock=fixed_clock)

    result = sink.write("claude", "replacement")

    assert result.existed
    assert result.backed_up == tmp_path / "CLAUDE.md.backup.20240517093000"
    assert result.backed_up.read_text(encoding="utf-8") == "original"
    assert (tmp_path / "CLAUDE.md").read_text(encoding="utf-8") == "replacement"


def test_dry_run_writes_nothing(tmp_path: Path) -> None:
    sink = FileOutputSink(tmp_path, dry_run=True)

    result = sink.write("readme", "# Readme\n")

    assert not result.written
    assert result.error is None
    assert not (tmp_path / "README.md").exists()


def test_write_output_splits_vscode_and_adds_metadata(tmp_path: Path, fixed_clock) -> None:
    vscode = json.dumps(
        {
            "settings": {"editor.formatOnSave": True},
            "extensions": {"recommendations": ["dbaeumer.vscode-eslint"]},
        }
    )
    sink = FileOutputSink(tmp_path)

    files = sink.write_output(_output(fixed_clock, {"claude": "# Guide\n", "vscode": vscode}))

    assert [item.name for item in files] == ["claude", "vscode", "vscode-extensions", "metadata"]
    settings = json.loads((tmp_path / ".vscode" / "settings.json").read_text(encoding="utf-8"))
    assert settings == {"editor.formatOnSave": True}
    extensions = json.loads((tmp_path / ".vscode" / "extensions.json").read_text(encoding="utf-8"))
    assert extensions == {"recommendations": ["dbaeumer.vscode-eslint"]}
    metadata = json.loads((tmp_path / ".ai-rules-metadata.json").read_text(encoding="utf-8"))
    assert metadata["appliedContentIds"] == ["tdd"]
    assert metadata["generatedAt"] == "2024-05-17T09:30:00Z"
    assert metadata["sourceConfiguration"]["project_type"] == "typescript"


def test_vscode_without_recommendations_skips_extensions_file(tmp_path: Path, fixed_clock) -> None:
    vscode = json.dumps({"settings": {}, "extensions": {"recommendations": []}})

    files = FileOutputSink(tmp_path).write_output(_output(fixed_clock, {"vscode": vscode}))

    assert [item.name for item in files] == ["vscode", "metadata"]
    assert not (tmp_path / ".vscode" / "extensions.json").exists()


def test_metadata_is_refreshed_even_without_overwrite(tmp_path: Path, fixed_clock) -> None:
    (tmp_path / ".ai-rules-metadata.json").write_text("{}", encoding="utf-8")
    sink = FileOutputSink(tmp_path, overwrite=False)

    files = sink.write_output(_output(fixed_clock, {}))

    assert files[-1].written
    assert "appliedContentIds" in (tmp_path / ".ai-rules-metadata.json").read_text(encoding="utf-8")


def test_summarize_counts_outcomes(tmp_path: Path) -> None:
    (tmp_path / "CLAUDE.md").write_text("original", encoding="utf-8")
    sink = FileOutputSink(tmp_path, overwrite=False)
    files = [sink.write("claude", "replacement"), sink.write("readme", "abc")]

    summary = FileOutputSink.summarize(files)

    assert summary.total_files == 2
    assert summary.existing == 1
    assert summary.new == 1
    assert summary.failed == 1
    assert summary.total_size == 3
    assert summary.backed_up == 0
