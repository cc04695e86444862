"""
Top-K ranking of model scores against the label catalog.
"""

import logging
from typing import List, Sequence, Union

import numpy as np

from soundrank.core.labels import LabelCatalog
from soundrank.core.models import RankedLabel
from soundrank.utils.errors import InferenceError

DEFAULT_TOP_K = 5
SCORE_REDUCTIONS = ("first", "mean")

logger = logging.getLogger(__name__)


def select_primary_scores(
    outputs: Sequence[np.ndarray],
    reduction: str = "first",
) -> np.ndarray:
    """
    Turn the engine's primary output into a 1-D score vector.

    Only ``outputs[0]`` is consulted. Outputs with leading axes, e.g.
    (1, classes) or per-frame (frames, classes), are reduced either by
    taking index 0 of each leading axis ("first") or by averaging them
    ("mean").

    Raises:
        InferenceError: The engine returned no outputs
        ValueError: Unknown reduction
    """
    if reduction not in SCORE_REDUCTIONS:
        raise ValueError(
            f"Unknown score reduction: {reduction}. Supported: {', '.join(SCORE_REDUCTIONS)}"
        )
    if len(outputs) == 0:
        raise InferenceError("Inference engine returned no outputs")

    primary = np.asarray(outputs[0])
    if primary.ndim == 0:
        return primary.reshape(1)
    if primary.ndim == 1:
        return primary

    if reduction == "mean":
        rows = primary.reshape(-1, primary.shape[-1])
        if rows.shape[0] == 0:
            return np.zeros(0, dtype=primary.dtype)
        return rows.mean(axis=0)

    while primary.ndim > 1:
        if primary.shape[0] == 0:
            return np.zeros(0, dtype=primary.dtype)
        primary = primary[0]
    return primary


def rank_scores(
    scores: Union[np.ndarray, Sequence[float]],
    catalog: Union[LabelCatalog, Sequence[str]],
    top_k: int = DEFAULT_TOP_K,
) -> List[RankedLabel]:
    """
    Pair scores with catalog labels and return the K highest.

    Ordering is by descending score. The sort is stable on class index,
    so the lower index wins a tie. NaN scores never raise; they rank
    after every comparable score. Indices past the end of the catalog
    resolve to ``"Unknown label"``. Fewer than K classes yields all of
    them, without padding.

    Args:
        scores: One score per class index
        catalog: Labels aligned to the score indices
        top_k: Number of entries to return (>= 1)

    Returns:
        List[RankedLabel]: ``min(top_k, len(scores))`` entries
    """
    if top_k < 1:
        raise ValueError(f"top_k must be at least 1, got {top_k}")
    if not isinstance(catalog, LabelCatalog):
        catalog = LabelCatalog(catalog)

    values = np.asarray(scores, dtype=np.float64).reshape(-1)
    if len(catalog) < len(values):
        logger.warning(
            f"Label catalog has {len(catalog)} entries for {len(values)} scores; "
            "missing labels will be reported as unknown"
        )

    order = np.argsort(-values, kind='stable')[:top_k]

    return [
        RankedLabel(index=int(i), label=catalog.get(int(i)), score=float(values[i]))
        for i in order
    ]


class TopKRanker:
    """Ranks raw engine outputs with a fixed K and score reduction."""

    def __init__(self, top_k: int = DEFAULT_TOP_K, score_reduction: str = "first"):
        if top_k < 1:
            raise ValueError(f"top_k must be at least 1, got {top_k}")
        if score_reduction not in SCORE_REDUCTIONS:
            raise ValueError(f"Unknown score reduction: {score_reduction}")
        self.top_k = top_k
        self.score_reduction = score_reduction

    def rank(
        self,
        outputs: Sequence[np.ndarray],
        catalog: Union[LabelCatalog, Sequence[str]],
    ) -> List[RankedLabel]:
        """Reduce the primary output and return its top-K labels."""
        scores = select_primary_scores(outputs, self.score_reduction)
        return rank_scores(scores, catalog, self.top_k)
