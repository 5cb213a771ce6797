"""CLI entrypoints for ai-rules commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Callable, List, Optional

from .assembly.assembler import DocumentAssembler
from .assembly.constants import DOCUMENT_PATHS, SECTION_ORDER
from .config import ConfigError, Settings, load_settings
from .configuration import (
    PROJECT_TYPES,
    ProjectConfiguration,
    apply_overrides,
    build_configuration,
    find_config_file,
    load_project_configuration,
    save_project_configuration,
)
from .content.repository import FileContentRepository
from .logging import configure_logging
from .models import AnswerSet, GeneratedOutput
from .output.sink import FileOutputSink
from .pipeline import GenerationError, GenerationPipeline
from .questions.validator import AnswerValidationError, AnswerValidator
from .rules.engine import RuleEngine
from .wizard import QuestionWizard, TerminalPrompter


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Increase log verbosity for troubleshooting.",
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Project directory to generate into (defaults to current directory).",
    )


def _add_configuration_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-t", "--type", dest="project_type", choices=PROJECT_TYPES, help="Project type.")
    parser.add_argument(
        "--tdd",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Enable or disable Test-Driven Development guidelines.",
    )
    parser.add_argument(
        "--strict-arch",
        dest="strict_architecture",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Enable or disable strict architecture guidelines.",
    )
    parser.add_argument(
        "-o",
        "--output",
        dest="formats",
        help="Comma-separated output formats (claude,vscode,readme,cursor,copilot,roocode,all).",
    )
    parser.add_argument("-n", "--name", dest="project_name", help="Project name used in documents.")
    parser.add_argument("-c", "--config", type=Path, help="Project configuration file (YAML or JSON).")


def _add_write_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show which files would be written without touching the disk.",
    )
    parser.add_argument(
        "--no-overwrite",
        action="store_true",
        help="Leave existing files untouched.",
    )
    parser.add_argument(
        "--backup",
        action="store_true",
        help="Copy existing files to <file>.backup.<timestamp> before overwriting.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ai-rules",
        description="Generate AI coding assistant instructions from a short project questionnaire.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--content-dir",
        type=Path,
        help="Directory with questions.yml, rules.yml and content fragments.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser(
        "init",
        help="Answer the questionnaire interactively, then generate documents.",
    )
    _add_verbose_option(init_parser, suppress_default=True)
    _add_path_argument(init_parser)
    _add_write_options(init_parser)
    init_parser.add_argument(
        "--save-config",
        type=Path,
        help="Also save the answers as a project configuration file (.yml or .json).",
    )

    generate_parser = subparsers.add_parser(
        "generate",
        help="Generate documents from defaults, a configuration file and flags.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    _add_path_argument(generate_parser)
    _add_configuration_options(generate_parser)
    _add_write_options(generate_parser)

    preview_parser = subparsers.add_parser(
        "preview",
        help="Print generated documents to stdout without writing files.",
    )
    _add_verbose_option(preview_parser, suppress_default=True)
    _add_path_argument(preview_parser)
    _add_configuration_options(preview_parser)

    list_parser = subparsers.add_parser(
        "list",
        help="List available content fragments.",
    )
    _add_verbose_option(list_parser, suppress_default=True)

    return parser


def main(argv: list[str] | None = None, *, input_fn: Callable[[str], str] | None = None) -> None:
    """CLI entrypoint for ai-rules commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    target = Path(getattr(args, "path", ".")).expanduser()
    try:
        settings = load_settings(target)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    configure_logging(verbose=bool(args.verbose), log_file=settings.logging.file)
    repository = FileContentRepository(args.content_dir or settings.content_dir)

    try:
        if args.command == "init":
            _run_init(args, settings, repository, input_fn)
        elif args.command == "generate":
            _run_generate(args, settings, repository)
        elif args.command == "preview":
            _run_preview(args, settings, repository)
        elif args.command == "list":
            _run_list(args, repository)
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except (KeyboardInterrupt, EOFError):
        parser.exit(1, "\nAborted.\n")
    except AnswerValidationError as exc:
        details = "".join(f"  - {issue.question_id}: {issue.detail}\n" for issue in exc.issues)
        parser.exit(1, f"ai-rules {args.command} failed: {exc}\n{details}")
    except (ConfigError, GenerationError) as exc:
        parser.exit(
            1, f"ai-rules {args.command} failed: {exc}\nRun with --verbose for more details.\n"
        )


def _run_init(
    args: argparse.Namespace,
    settings: Settings,
    repository: FileContentRepository,
    input_fn: Callable[[str], str] | None,
) -> None:
    questions = repository.load_questions()
    print("Answer each question; press Enter to keep the default or type < to go back.")
    answers = QuestionWizard(questions, TerminalPrompter(input_fn=input_fn)).run()
    AnswerValidator().validate(answers, questions).raise_for_errors()
    configuration = build_configuration(answers, questions)

    if args.save_config is not None:
        saved = save_project_configuration(configuration, args.save_config)
        print(f"Configuration saved to {_relativize(saved)}")

    output = _pipeline(settings, repository).generate(configuration)
    _write(args, settings, Path(args.path), output)


def _run_generate(
    args: argparse.Namespace, settings: Settings, repository: FileContentRepository
) -> None:
    configuration = _resolve_configuration(args, settings, repository)
    output = _pipeline(settings, repository).generate(configuration)
    _write(args, settings, Path(args.path), output)


def _run_preview(
    args: argparse.Namespace, settings: Settings, repository: FileContentRepository
) -> None:
    configuration = _resolve_configuration(args, settings, repository)
    output = _pipeline(settings, repository).generate(configuration)
    for name, content in output.documents.items():
        print(f"==> {DOCUMENT_PATHS.get(name, name)} <==")
        print(content.rstrip("\n"))
        print()
    _report(output)


def _run_list(args: argparse.Namespace, repository: FileContentRepository) -> None:
    fragments = repository.load_fragments()
    rules = {rule.content_id: rule for rule in repository.load_rules()}
    defaults = build_configuration(AnswerSet(), repository.load_questions())
    engine = RuleEngine()
    for section in SECTION_ORDER:
        members = [fragment for fragment in fragments.values() if fragment.section == section]
        if not members:
            continue
        print(f"{section}:")
        for fragment in sorted(members, key=lambda item: item.id):
            print(f"  {fragment.id:<28} [{fragment.category}] {fragment.description}")
            rule = rules.get(fragment.id)
            if not args.verbose:
                continue
            if rule is None:
                print("      (no rule selects this fragment)")
                continue
            matched = engine.explain(defaults, rule)
            conditions = ", ".join(
                f"{condition.field} {condition.operator.value}"
                + ("" if condition.value is None else f" {condition.value!r}")
                for condition in rule.conditions
            )
            print(f"      priority {rule.priority}; when {conditions or 'always'}")
            if matched:
                print(f"      matches the defaults via {matched[0].field}")


def _pipeline(settings: Settings, repository: FileContentRepository) -> GenerationPipeline:
    return GenerationPipeline(repository, assembler=DocumentAssembler(templates_dir=settings.templates_dir))


def _resolve_configuration(
    args: argparse.Namespace, settings: Settings, repository: FileContentRepository
) -> ProjectConfiguration:
    """Defaults, then a project configuration file, then command-line flags."""
    config_path: Optional[Path] = args.config or find_config_file(Path(args.path))
    if config_path is not None:
        configuration = load_project_configuration(config_path).configuration
    else:
        questions = repository.load_questions()
        configuration = build_configuration(AnswerSet.with_defaults(questions), questions)

    formats: Optional[List[str]] = None
    if args.formats:
        formats = [part.strip() for part in args.formats.split(",") if part.strip()]
    elif config_path is None and settings.formats:
        formats = list(settings.formats)

    return apply_overrides(
        configuration,
        project_type=args.project_type,
        tdd=args.tdd,
        strict_architecture=args.strict_architecture,
        formats=formats,
        project_name=args.project_name,
    )


def _write(
    args: argparse.Namespace, settings: Settings, target: Path, output: GeneratedOutput
) -> None:
    sink = FileOutputSink(
        settings.output.dir or target,
        overwrite=settings.output.overwrite and not args.no_overwrite,
        backups=settings.output.backups or args.backup,
        dry_run=args.dry_run,
    )
    files = sink.write_output(output)
    summary = sink.summarize(files)
    for item in files:
        if item.error:
            print(f"  skipped {_relativize(item.path)}: {item.error}")
        elif args.dry_run:
            print(f"  would write {_relativize(item.path)} ({item.size} bytes)")
        else:
            suffix = " (backup saved)" if item.backed_up else ""
            print(f"  wrote {_relativize(item.path)}{suffix}")
    verb = "Would generate" if args.dry_run else "Generated"
    print(
        f"{verb} {summary.total_files - summary.failed} file(s), {summary.total_size} bytes "
        f"({summary.new} new, {summary.existing} existing, {summary.backed_up} backed up)"
    )
    _report(output)
    if summary.failed:
        raise GenerationError(f"{summary.failed} file(s) could not be written")


def _report(output: GeneratedOutput) -> None:
    for warning in output.metadata.warnings:
        print(f"warning: {warning}", file=sys.stderr)
    for error in output.errors:
        print(f"error: {error.document}: {error.message}", file=sys.stderr)


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
