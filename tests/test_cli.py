"""CLI parser and command behaviour tests."""

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path

import pytest

from airules.cli import _build_parser, main
from airules.configuration import OutputOptions, ProjectConfiguration, save_project_configuration


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "generate"])
    assert args.verbose is True
    assert args.command == "generate"


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["generate", "--verbose"])
    assert args.verbose is True
    assert args.command == "generate"


def test_cli_parses_generate_overrides() -> None:
    parser = _build_parser()
    args = parser.parse_args(
        ["generate", "proj", "-t", "python", "--no-tdd", "-o", "claude,readme", "-n", "Acme", "--backup"]
    )
    assert args.path == "proj"
    assert args.project_type == "python"
    assert args.tdd is False
    assert args.strict_architecture is None
    assert args.formats == "claude,readme"
    assert args.project_name == "Acme"
    assert args.backup is True
    assert args.dry_run is False


def test_cli_rejects_unknown_project_type() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args(["generate", "-t", "cobol"])


def test_generate_writes_requested_documents(tmp_path: Path, capsys) -> None:
    main(["generate", str(tmp_path), "-o", "claude,readme", "-n", "Acme"])

    claude = (tmp_path / "CLAUDE.md").read_text(encoding="utf-8")
    assert claude.startswith("# Development Guidelines for Acme\n")
    assert (tmp_path / "README.md").read_text(encoding="utf-8").startswith("# Acme\n")
    assert not (tmp_path / ".cursorrules").exists()
    metadata = json.loads((tmp_path / ".ai-rules-metadata.json").read_text(encoding="utf-8"))
    assert "tdd" in metadata["appliedContentIds"]
    assert "Generated 3 file(s)" in capsys.readouterr().out


def test_generate_dry_run_writes_nothing(tmp_path: Path, capsys) -> None:
    main(["generate", str(tmp_path), "-o", "claude", "--dry-run"])

    assert not (tmp_path / "CLAUDE.md").exists()
    assert "Would generate 2 file(s)" in capsys.readouterr().out


def test_generate_reads_project_configuration_file(tmp_path: Path) -> None:
    configuration = replace(
        ProjectConfiguration(), project_type="python", output=OutputOptions(formats=("claude",))
    )
    save_project_configuration(configuration, tmp_path / "ai-rules.config.yml")

    main(["generate", str(tmp_path)])

    claude = (tmp_path / "CLAUDE.md").read_text(encoding="utf-8")
    assert claude.rstrip("\n").endswith("for python project")
    assert not (tmp_path / "README.md").exists()


def test_generate_respects_no_overwrite(tmp_path: Path, capsys) -> None:
    (tmp_path / "CLAUDE.md").write_text("keep me", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["generate", str(tmp_path), "-o", "claude", "--no-overwrite"])

    assert excinfo.value.code == 1
    assert (tmp_path / "CLAUDE.md").read_text(encoding="utf-8") == "keep me"
    assert "could not be written" in capsys.readouterr().err


def test_preview_prints_documents_without_writing(tmp_path: Path, capsys) -> None:
    main(["preview", str(tmp_path), "-o", "claude,copilot"])

    out = capsys.readouterr().out
    assert "==> CLAUDE.md <==" in out
    assert "==> .github/copilot-instructions.md <==" in out
    assert not (tmp_path / "CLAUDE.md").exists()


def test_missing_config_file_exits_with_message(tmp_path: Path, capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["generate", str(tmp_path), "-c", str(tmp_path / "missing.yml")])

    assert excinfo.value.code == 1
    err = capsys.readouterr().err
    assert "ai-rules generate failed" in err
    assert "Config file not found" in err


def test_config_with_date_customization_exits_before_writing(tmp_path: Path, capsys) -> None:
    (tmp_path / "ai-rules.config.yml").write_text(
        "output:\n  formats: [claude]\n  customizations:\n    since: 2024-01-01\n", encoding="utf-8"
    )

    with pytest.raises(SystemExit) as excinfo:
        main(["generate", str(tmp_path)])

    assert excinfo.value.code == 1
    assert "output.customizations" in capsys.readouterr().err
    assert not (tmp_path / "CLAUDE.md").exists()
    assert not (tmp_path / ".ai-rules-metadata.json").exists()


def test_unknown_output_format_exits_with_message(tmp_path: Path, capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["generate", str(tmp_path), "-o", "claude,pdf"])

    assert excinfo.value.code == 1
    assert "unknown formats: pdf" in capsys.readouterr().err


def test_list_groups_fragments_by_section(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)

    main(["list", "--verbose"])

    out = capsys.readouterr().out
    assert out.startswith("philosophy:\n")
    assert "  tdd " in out
    assert "priority 10; when philosophy.tdd equals True" in out
    assert "infrastructure:" in out


def test_init_with_defaults_generates_every_document(tmp_path: Path, capsys) -> None:
    config_path = tmp_path / "ai-rules.config.yml"

    main(["init", str(tmp_path), "--save-config", str(config_path)], input_fn=lambda _prompt: "")

    assert config_path.is_file()
    for relative in (
        "CLAUDE.md",
        "README.md",
        ".cursorrules",
        ".github/copilot-instructions.md",
        ".roo/rules/instructions.md",
        ".vscode/settings.json",
        ".vscode/extensions.json",
    ):
        assert (tmp_path / relative).is_file(), relative
    assert "Configuration saved to" in capsys.readouterr().out


def test_init_aborts_cleanly_on_end_of_input(tmp_path: Path, capsys) -> None:
    def closed(_prompt: str) -> str:
        raise EOFError

    with pytest.raises(SystemExit) as excinfo:
        main(["init", str(tmp_path)], input_fn=closed)

    assert excinfo.value.code == 1
    assert "Aborted." in capsys.readouterr().err
    assert not (tmp_path / "CLAUDE.md").exists()
