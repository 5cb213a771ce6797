"""Generate AI coding assistant instructions from a short project questionnaire."""

__version__ = "1.0.0"
