"""Output sinks for generated documents."""

from .sink import FileOutputSink, OutputSink, WriteSummary, WrittenFile

__all__ = ["FileOutputSink", "OutputSink", "WriteSummary", "WrittenFile"]
