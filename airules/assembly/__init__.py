"""Document assembly: section grouping, templating and per-document renderers."""

from .assembler import DocumentAssembler
from .constants import ALL_DOCUMENTS, DOCUMENT_PATHS, DOCUMENT_TYPES, FRAGMENT_DOCUMENTS
from .template import TemplateSyntaxError, render_template, template_context

__all__ = [
    "ALL_DOCUMENTS",
    "DOCUMENT_PATHS",
    "DOCUMENT_TYPES",
    "DocumentAssembler",
    "FRAGMENT_DOCUMENTS",
    "TemplateSyntaxError",
    "render_template",
    "template_context",
]
