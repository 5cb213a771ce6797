"""Generation pipeline: configuration in, rendered documents out."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .assembly.assembler import DocumentAssembler
from .assembly.constants import ALL_DOCUMENTS, DOCUMENT_TYPES, FRAGMENT_DOCUMENTS
from .assembly.template import TemplateSyntaxError
from .configuration import ProjectConfiguration, configuration_warnings
from .content.repository import ContentRepository
from .logging import get_logger
from .models import ContentFragment, DocumentError, GeneratedOutput, GenerationMetadata
from .rules.engine import RuleEngine

UNKNOWN_DOCUMENT_TYPE = "UnknownDocumentType"
NO_APPLICABLE_CONTENT = "NoApplicableContent"
TEMPLATE_SYNTAX_ERROR = "TemplateSyntaxError"


class GenerationError(RuntimeError):
    """Base class for failures that abort a whole generation run."""


class UnknownDocumentTypeError(GenerationError):
    """Raised when none of the requested document names is known."""

    def __init__(self, names: Iterable[str]) -> None:
        self.names = list(names)
        super().__init__(
            f"Unknown document type(s): {', '.join(self.names) or '(none requested)'}; "
            f"expected one of {', '.join(DOCUMENT_TYPES)} or {ALL_DOCUMENTS}"
        )


class NoApplicableContentError(GenerationError):
    """Raised when every requested fragment-backed document would be empty."""


def normalize_documents(requested: Iterable[str]) -> Tuple[Tuple[str, ...], List[str]]:
    """Split requested names into known documents (canonical order) and unknown names."""
    names = [str(name).strip() for name in requested if str(name).strip()]
    unknown: List[str] = []
    for name in names:
        if name != ALL_DOCUMENTS and name not in DOCUMENT_TYPES and name not in unknown:
            unknown.append(name)
    if ALL_DOCUMENTS in names:
        return DOCUMENT_TYPES, unknown
    return tuple(name for name in DOCUMENT_TYPES if name in names), unknown


class GenerationPipeline:
    """Runs rule selection and document assembly for one configuration.

    The clock is injectable so that output is reproducible: identical
    configuration, content, clock value and requested documents always give
    byte-identical documents.
    """

    def __init__(
        self,
        repository: ContentRepository,
        engine: RuleEngine | None = None,
        assembler: DocumentAssembler | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.repository = repository
        self.engine = engine or RuleEngine()
        self.assembler = assembler or DocumentAssembler()
        self.clock = clock or (lambda: datetime.now(UTC))
        self.logger = get_logger("pipeline")

    def generate(
        self,
        configuration: ProjectConfiguration,
        requested_documents: Optional[Iterable[str]] = None,
    ) -> GeneratedOutput:
        """Render the requested documents (default: the configured output formats)."""
        requested = list(requested_documents or ()) or list(configuration.output.formats)
        targets, unknown = normalize_documents(requested)
        errors: List[DocumentError] = [
            DocumentError(UNKNOWN_DOCUMENT_TYPE, name, f"Unknown document type '{name}'")
            for name in unknown
        ]
        for error in errors:
            self.logger.warning(error.message)
        if not targets:
            raise UnknownDocumentTypeError(unknown)

        rules = self.repository.load_rules()
        fragments = self.repository.load_fragments()
        selection = self.engine.evaluate(configuration, rules)
        self.logger.debug(
            "Selected %d content fragment(s), suppressed %d",
            len(selection.content_ids),
            len(selection.suppressed),
        )

        warnings: List[str] = list(configuration_warnings(configuration))
        fragment_targets = [name for name in targets if name in FRAGMENT_DOCUMENTS]
        empty_targets = [
            name
            for name in fragment_targets
            if not self._has_content(name, selection.content_ids, fragments, configuration)
        ]
        if fragment_targets and len(empty_targets) == len(fragment_targets):
            raise NoApplicableContentError(
                "No content fragments apply to the requested documents: "
                + ", ".join(fragment_targets)
            )
        for name in empty_targets:
            message = f"{NO_APPLICABLE_CONTENT}: {name} received no content fragments"
            self.logger.warning(message)
            warnings.append(message)

        generated_at = self.clock()
        documents: Dict[str, str] = {}
        for name in targets:
            try:
                documents[name] = self.assembler.render_document(
                    name, selection.content_ids, fragments, configuration, generated_at
                )
            except TemplateSyntaxError as exc:
                self.logger.warning("Skipping %s: %s", name, exc)
                errors.append(DocumentError(TEMPLATE_SYNTAX_ERROR, name, str(exc)))

        self.logger.info("Generated %d document(s)", len(documents))
        metadata = GenerationMetadata(
            applied_content_ids=tuple(selection.content_ids),
            generated_at=generated_at,
            source_configuration=configuration,
            suppressed_content_ids=tuple(selection.suppressed),
            warnings=tuple(warnings),
        )
        return GeneratedOutput(documents=documents, metadata=metadata, errors=tuple(errors))

    def _has_content(
        self,
        name: str,
        content_ids: Sequence[str],
        fragments: Mapping[str, ContentFragment],
        configuration: ProjectConfiguration,
    ) -> bool:
        try:
            return bool(self.assembler.rendered_sections(name, content_ids, fragments, configuration))
        except TemplateSyntaxError:
            # Reported as a document error when the document itself renders.
            return True


__all__ = [
    "GenerationError",
    "GenerationPipeline",
    "NoApplicableContentError",
    "UnknownDocumentTypeError",
    "normalize_documents",
]
