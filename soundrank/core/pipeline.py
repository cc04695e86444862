"""
Classification pipeline for sound-event models.

Sequences loading, channel reduction, framing, inference and ranking.
Each stage fully materializes its output before the next begins.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from soundrank.core.channels import reduce_to_mono
from soundrank.core.framing import FramingPolicy, create_framing_policy
from soundrank.core.labels import LabelCatalog
from soundrank.core.loader import AudioLoader
from soundrank.core.models import ClassificationResult
from soundrank.core.ranking import DEFAULT_TOP_K, SCORE_REDUCTIONS, TopKRanker
from soundrank.engines.base import InferenceEngine, check_shape_compatible
from soundrank.utils.errors import ConfigurationError
from soundrank.utils.logging import run_logger

logger = logging.getLogger(__name__)


@dataclass
class PipelineConfig:
    """Everything that distinguishes one model variant from another."""

    model_path: Path
    label_path: Path
    framing: FramingPolicy
    top_k: int = DEFAULT_TOP_K
    score_reduction: str = "first"
    providers: List[str] = field(default_factory=lambda: ["CPUExecutionProvider"])
    input_shape: Optional[Tuple[Any, ...]] = None

    def __post_init__(self) -> None:
        """Validate fields."""
        self.model_path = Path(self.model_path)
        self.label_path = Path(self.label_path)
        if isinstance(self.top_k, bool) or not isinstance(self.top_k, int) or self.top_k < 1:
            raise ConfigurationError(
                f"ranking.top_k must be a positive integer, got {self.top_k!r}",
                config_key="ranking.top_k"
            )
        if self.score_reduction not in SCORE_REDUCTIONS:
            raise ConfigurationError(
                f"Unknown score reduction: {self.score_reduction}. "
                f"Supported: {', '.join(SCORE_REDUCTIONS)}",
                config_key="ranking.score_reduction"
            )
        if self.input_shape is not None:
            self.input_shape = tuple(self.input_shape)

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "PipelineConfig":
        """
        Build from a configuration dictionary (see ``get_default_config``).

        Raises:
            ConfigurationError: Missing or invalid values
        """
        model = config.get('model') or {}
        labels = config.get('labels') or {}
        ranking = config.get('ranking') or {}

        if not model.get('path'):
            raise ConfigurationError("model.path is required", config_key="model.path")
        if not labels.get('path'):
            raise ConfigurationError("labels.path is required", config_key="labels.path")

        return cls(
            model_path=Path(model['path']),
            label_path=Path(labels['path']),
            framing=create_framing_policy(config.get('framing')),
            top_k=ranking.get('top_k', DEFAULT_TOP_K),
            score_reduction=ranking.get('score_reduction', 'first'),
            providers=list(model.get('providers') or ["CPUExecutionProvider"]),
            input_shape=model.get('input_shape'),
        )


class ClassificationPipeline:
    """
    Runs one audio file through loader, reducer, framer, engine and ranker.

    The label catalog is loaded once at construction, and the engine's
    input shape is checked against the framing policy at the same time,
    so a mismatched configuration fails before any audio is read.
    """

    def __init__(
        self,
        engine: InferenceEngine,
        catalog: LabelCatalog,
        framing: FramingPolicy,
        ranker: Optional[TopKRanker] = None,
        loader: Optional[AudioLoader] = None,
    ):
        """
        Initialize pipeline with dependency injection.

        Args:
            engine: Inference engine for the model variant
            catalog: Labels aligned to the engine's output
            framing: Framing policy matching the engine's input
            ranker: Top-K ranker (K=5, "first" reduction if None)
            loader: Audio loader (default loader if None)

        Raises:
            ShapeMismatchError: Framing shape disagrees with the engine input
        """
        self.engine = engine
        self.catalog = catalog
        self.framing = framing
        self.ranker = ranker or TopKRanker()
        self.loader = loader or AudioLoader()

        check_shape_compatible(framing.expected_shape, engine.input_shape)
        logger.info(
            f"Pipeline ready: engine={engine.name}, framing={framing.describe()}, "
            f"labels={len(catalog)}, top_k={self.ranker.top_k}"
        )

    def classify(self, audio_path: Union[str, Path]) -> ClassificationResult:
        """
        Classify one audio file.

        Args:
            audio_path: Caller-supplied path to a mono or stereo PCM file

        Returns:
            ClassificationResult: Top-K labels with scores

        Raises:
            SoundRankError: Any stage failure; the run is aborted
        """
        audio_path = Path(audio_path)
        log = run_logger(logger, audio_file=str(audio_path), engine=self.engine.name)
        start_time = time.time()

        buffer = self.loader.load(audio_path)
        mono = reduce_to_mono(buffer)
        log.debug(f"Reduced {buffer.channels} channel(s) to {len(mono)} mono samples")

        tensor = self.framing.frame(mono)
        log.debug(
            f"Framed {tensor.source_length} samples into {tensor.shape} "
            f"(padded={tensor.padded}, truncated={tensor.truncated})"
        )

        outputs = self.engine.run(tensor)
        labels = self.ranker.rank(outputs, self.catalog)

        elapsed = time.time() - start_time
        log.info(f"Classified {audio_path.name} in {elapsed:.3f}s")

        return ClassificationResult(
            file_path=audio_path,
            labels=labels,
            model_name=self.engine.name,
            framing=self.framing.describe(),
            processing_time=elapsed,
            sample_rate=mono.sample_rate,
            duration=mono.duration,
        )

    def shutdown(self) -> None:
        """Release engine resources."""
        self.engine.close()

    def __enter__(self) -> "ClassificationPipeline":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.shutdown()


def create_pipeline(
    config: Union[PipelineConfig, Dict[str, Any]],
    engine: Optional[InferenceEngine] = None,
) -> ClassificationPipeline:
    """
    Factory function to create a fully configured pipeline.

    Args:
        config: PipelineConfig or configuration dictionary
        engine: Optional pre-built engine (an ONNX engine is created if None)

    Returns:
        ClassificationPipeline: Configured pipeline

    Raises:
        ConfigurationError: Invalid configuration
        LabelLoadError: Label file cannot be read
        ModelLoadError: Model artifact cannot be loaded
        ShapeMismatchError: Framing shape disagrees with the engine input
    """
    if not isinstance(config, PipelineConfig):
        config = PipelineConfig.from_dict(config)

    catalog = LabelCatalog.from_file(config.label_path)

    if engine is None:
        from soundrank.engines.onnx import create_inference_engine
        engine = create_inference_engine({
            "path": str(config.model_path),
            "providers": config.providers,
            "input_shape": config.input_shape,
        })

    return ClassificationPipeline(
        engine=engine,
        catalog=catalog,
        framing=config.framing,
        ranker=TopKRanker(config.top_k, config.score_reduction),
    )
