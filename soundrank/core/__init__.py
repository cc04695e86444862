"""
Core module containing data models, preprocessing stages, ranking, and
the pipeline driver.

Uses lazy imports for modules with heavy dependencies (soundfile).
"""

# Models are lightweight - import directly
from soundrank.core.models import (
    SampleBuffer,
    MonoBuffer,
    FramedTensor,
    RankedLabel,
    ClassificationResult,
)
from soundrank.core.channels import reduce_to_mono
from soundrank.core.framing import (
    FramingPolicy,
    FixedFraming,
    FlatFraming,
    create_framing_policy,
)
from soundrank.core.labels import LabelCatalog, UNKNOWN_LABEL
from soundrank.core.ranking import TopKRanker, rank_scores, select_primary_scores

__all__ = [
    # Models (always available)
    "SampleBuffer",
    "MonoBuffer",
    "FramedTensor",
    "RankedLabel",
    "ClassificationResult",
    # Stages
    "reduce_to_mono",
    "FramingPolicy",
    "FixedFraming",
    "FlatFraming",
    "create_framing_policy",
    "LabelCatalog",
    "UNKNOWN_LABEL",
    "TopKRanker",
    "rank_scores",
    "select_primary_scores",
    # Heavy modules (lazy loaded)
    "AudioLoader",
    "ClassificationPipeline",
    "PipelineConfig",
    "create_pipeline",
]


def __getattr__(name: str):
    """Lazy load modules with heavy dependencies."""
    if name == "AudioLoader":
        from soundrank.core.loader import AudioLoader
        return AudioLoader
    elif name in ("ClassificationPipeline", "PipelineConfig", "create_pipeline"):
        from soundrank.core import pipeline
        return getattr(pipeline, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
