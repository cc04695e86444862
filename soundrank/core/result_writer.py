"""
Result writers for classification output.

Each writer renders a ClassificationResult to a text stream (stdout or
an open file). New formats are added by registering a writer class.
"""

import json
import math
from abc import ABC, abstractmethod
from typing import TextIO

from soundrank.core.models import ClassificationResult


class ResultWriter(ABC):
    """Abstract base class for result writers (Strategy Pattern)."""

    @abstractmethod
    def write(self, result: ClassificationResult, stream: TextIO) -> None:
        """Write *result* to *stream*."""


class TextResultWriter(ResultWriter):
    """Human-readable listing: one label per line, best first."""

    def __init__(self, include_header: bool = True, include_scores: bool = False):
        """
        Initialize text writer.

        Args:
            include_header: Whether to print a "Top K labels:" line first
            include_scores: Whether to append each label's score
        """
        self.include_header = include_header
        self.include_scores = include_scores

    def write(self, result: ClassificationResult, stream: TextIO) -> None:
        if self.include_header:
            stream.write(f"Top {len(result.labels)} labels:\n")
        for entry in result.labels:
            if self.include_scores:
                stream.write(f"{entry.label}\t{entry.score:.6f}\n")
            else:
                stream.write(f"{entry.label}\n")


class KeyValueResultWriter(ResultWriter):
    """
    Line-delimited key=value records, one per ranked label.

    Labels are JSON-quoted so that spaces, commas and '=' survive.
    Example:
        rank=1 index=494 score=0.812345 label="Silence"
    """

    def write(self, result: ClassificationResult, stream: TextIO) -> None:
        for rank, entry in enumerate(result.labels, start=1):
            stream.write(
                f"rank={rank} index={entry.index} score={entry.score:.6f} "
                f"label={json.dumps(entry.label, ensure_ascii=False)}\n"
            )


class JSONResultWriter(ResultWriter):
    """
    Full result as a single strict JSON document.

    Non-finite scores (NaN, infinities) are written as null.
    """

    def __init__(self, indent: int = 2):
        self.indent = indent

    def write(self, result: ClassificationResult, stream: TextIO) -> None:
        data = result.to_dict()
        for entry in data["labels"]:
            if not math.isfinite(entry["score"]):
                entry["score"] = None
        json.dump(data, stream, indent=self.indent, default=str, allow_nan=False)
        stream.write("\n")


def create_result_writer(format: str = "text", **kwargs) -> ResultWriter:
    """
    Factory function to create appropriate result writer.

    Args:
        format: Output format ("text", "kv" or "json")
        **kwargs: Additional arguments for the writer

    Returns:
        Appropriate ResultWriter instance
    """
    writers = {
        "text": TextResultWriter,
        "txt": TextResultWriter,
        "kv": KeyValueResultWriter,
        "json": JSONResultWriter,
    }

    writer_class = writers.get(format.lower())
    if writer_class is None:
        raise ValueError(f"Unknown format: {format}. Supported: {list(writers.keys())}")

    return writer_class(**kwargs)
