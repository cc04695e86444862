"""
Label catalog: the ordered class names aligned to a model's output.
"""

import logging
from pathlib import Path
from typing import Iterable, Iterator, Tuple, Union

from soundrank.utils.errors import LabelLoadError

UNKNOWN_LABEL = "Unknown label"

logger = logging.getLogger(__name__)


class LabelCatalog:
    """
    Ordered, read-only list of class names.

    Line ``i`` of the label file names class index ``i``. The order is
    never changed after loading.
    """

    def __init__(self, labels: Iterable[str]):
        self._labels: Tuple[str, ...] = tuple(labels)

    @classmethod
    def from_file(cls, file_path: Union[str, Path]) -> "LabelCatalog":
        """
        Read one label per line, in file order.

        Only the line terminator ("\\n" or "\\r\\n") is removed. Blank lines
        are kept as empty labels so that indices stay aligned.

        Raises:
            LabelLoadError: File cannot be opened, read, or decoded as UTF-8
        """
        file_path = Path(file_path)
        try:
            with open(file_path, 'r', encoding='utf-8', newline='') as f:
                text = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise LabelLoadError(
                f"Cannot read label file {file_path}: {e}",
                file_path=str(file_path)
            ) from e

        lines = text.split('\n')
        if lines[-1] == '':
            lines.pop()
        labels = [line[:-1] if line.endswith('\r') else line for line in lines]

        logger.info(f"Loaded {len(labels)} labels from {file_path}")
        return cls(labels)

    def get(self, index: int, default: str = UNKNOWN_LABEL) -> str:
        """Label for *index*, or *default* when the catalog has no such line."""
        if 0 <= index < len(self._labels):
            return self._labels[index]
        return default

    def __getitem__(self, index: int) -> str:
        return self._labels[index]

    def __len__(self) -> int:
        return len(self._labels)

    def __iter__(self) -> Iterator[str]:
        return iter(self._labels)

    def __repr__(self) -> str:
        return f"<LabelCatalog {len(self._labels)} labels>"
