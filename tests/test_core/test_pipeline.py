"""Tests for the ClassificationPipeline driver and its configuration."""

from pathlib import Path
from unittest.mock import patch

import numpy as np
import pytest

from soundrank.core.framing import FixedFraming, FlatFraming
from soundrank.core.labels import LabelCatalog
from soundrank.core.pipeline import ClassificationPipeline, PipelineConfig, create_pipeline
from soundrank.core.ranking import TopKRanker
from soundrank.utils.config import get_default_config
from soundrank.utils.errors import (
    AudioLoadError,
    ConfigurationError,
    LabelLoadError,
    ModelLoadError,
    ShapeMismatchError,
    UnsupportedChannelLayoutError,
)

CATALOG = LabelCatalog(["dog", "siren", "rain"])


def _pcm(values):
    return (np.asarray(values) * 32767).round().astype(np.int16)


class TestClassificationPipeline:
    def test_end_to_end_fixed_framing(self, write_wav, stub_engine):
        path = write_wav("clip.wav", _pcm([0.5, -1.0, 0.25, 0.0]))
        pipeline = ClassificationPipeline(
            engine=stub_engine,
            catalog=CATALOG,
            framing=FixedFraming(2, 4),
            ranker=TopKRanker(top_k=2),
        )

        result = pipeline.classify(path)

        assert result.label_names == ["siren", "rain"]
        assert result.top_label.score == pytest.approx(0.9)
        assert result.model_name == "stub"
        assert result.framing == "fixed(1x1x2x4)"
        assert result.file_path == path
        assert result.sample_rate == 16000

        fed = stub_engine.calls[0]
        assert fed.shape == (1, 1, 2, 4)
        np.testing.assert_allclose(fed[0, 0, 0], [0.5, -1.0, 0.25, 0.0], atol=1e-4)
        assert not fed[0, 0, 1].any()

    def test_stereo_is_reduced_before_framing(self, write_wav, stub_engine):
        stereo = np.array([[32767, 0], [0, 32767], [16384, 16384]], dtype=np.int16)
        path = write_wav("stereo.wav", stereo)
        pipeline = ClassificationPipeline(stub_engine, CATALOG, FixedFraming(2, 4))

        pipeline.classify(path)

        fed = stub_engine.calls[0].reshape(-1)
        np.testing.assert_allclose(fed[:3], [0.5, 0.5, 16384 / 32767], atol=1e-4)
        assert not fed[3:].any()

    def test_flat_framing_with_variable_engine(self, write_wav, make_engine):
        engine = make_engine(input_shape=(None,), outputs=[np.array([[0.9, 0.1, 0.0], [0.0, 0.1, 0.9]])])
        path = write_wav("wave.wav", _pcm(np.linspace(-0.5, 0.5, 100)))
        pipeline = ClassificationPipeline(
            engine, CATALOG, FlatFraming(), ranker=TopKRanker(top_k=3, score_reduction="mean")
        )

        result = pipeline.classify(path)

        assert engine.calls[0].shape == (100,)
        assert result.label_names[2] == "siren"
        assert result.duration == pytest.approx(100 / 16000)

    def test_default_ranker_returns_five(self, write_wav, make_engine):
        engine = make_engine(outputs=[np.arange(8, dtype=np.float32)])
        catalog = LabelCatalog([f"c{i}" for i in range(8)])
        pipeline = ClassificationPipeline(engine, catalog, FixedFraming(2, 4))

        result = pipeline.classify(write_wav("clip.wav", _pcm([0.1])))

        assert result.label_names == ["c7", "c6", "c5", "c4", "c3"]

    def test_shape_mismatch_fails_at_construction(self, make_engine):
        engine = make_engine(input_shape=(1, 1, 96, 64))
        with pytest.raises(ShapeMismatchError):
            ClassificationPipeline(engine, CATALOG, FixedFraming(2, 4))

    def test_flat_framing_against_fixed_engine_fails(self, make_engine):
        engine = make_engine(input_shape=(1, 1, 96, 64))
        with pytest.raises(ShapeMismatchError):
            ClassificationPipeline(engine, CATALOG, FlatFraming())

    def test_unsupported_channel_layout(self, write_wav, stub_engine):
        path = write_wav("surround.wav", np.zeros((10, 6), dtype=np.int16))
        pipeline = ClassificationPipeline(stub_engine, CATALOG, FixedFraming(2, 4))

        with pytest.raises(UnsupportedChannelLayoutError):
            pipeline.classify(path)
        assert stub_engine.calls == []

    def test_missing_audio_aborts_before_inference(self, tmp_path, stub_engine):
        pipeline = ClassificationPipeline(stub_engine, CATALOG, FixedFraming(2, 4))
        with pytest.raises(AudioLoadError):
            pipeline.classify(tmp_path / "absent.wav")
        assert stub_engine.calls == []

    def test_context_manager_closes_engine(self, stub_engine):
        with ClassificationPipeline(stub_engine, CATALOG, FixedFraming(2, 4)):
            pass
        assert stub_engine.closed

    def test_result_to_dict(self, write_wav, stub_engine):
        pipeline = ClassificationPipeline(stub_engine, CATALOG, FixedFraming(2, 4))
        data = pipeline.classify(write_wav("clip.wav", _pcm([0.0]))).to_dict()

        assert data["labels"][0] == {"index": 1, "label": "siren", "score": pytest.approx(0.9)}
        assert data["model_name"] == "stub"
        assert Path(data["file_path"]).name == "clip.wav"


class TestPipelineConfig:
    def test_from_default_config(self):
        config = PipelineConfig.from_dict(get_default_config())

        assert config.model_path == Path("./models/yamnet.onnx")
        assert config.label_path == Path("./models/yamnet_label_list.txt")
        assert config.framing.expected_shape == (1, 1, 96, 64)
        assert config.top_k == 5
        assert config.score_reduction == "first"
        assert config.providers == ["CPUExecutionProvider"]
        assert config.input_shape is None

    def test_flat_variant(self):
        config = PipelineConfig.from_dict({
            "model": {"path": "wave.onnx", "input_shape": [None]},
            "labels": {"path": "labels.txt"},
            "framing": {"policy": "flat"},
            "ranking": {"top_k": 3, "score_reduction": "mean"},
        })
        assert isinstance(config.framing, FlatFraming)
        assert config.input_shape == (None,)
        assert config.top_k == 3

    def test_missing_model_path(self):
        with pytest.raises(ConfigurationError) as exc_info:
            PipelineConfig.from_dict({"labels": {"path": "labels.txt"}})
        assert exc_info.value.config_key == "model.path"

    def test_missing_label_path(self):
        with pytest.raises(ConfigurationError) as exc_info:
            PipelineConfig.from_dict({"model": {"path": "m.onnx"}})
        assert exc_info.value.config_key == "labels.path"

    @pytest.mark.parametrize("top_k", [0, -3, "5", True])
    def test_invalid_top_k(self, top_k):
        with pytest.raises(ConfigurationError):
            PipelineConfig("m.onnx", "l.txt", FixedFraming(2, 4), top_k=top_k)

    def test_invalid_reduction(self):
        with pytest.raises(ConfigurationError):
            PipelineConfig("m.onnx", "l.txt", FixedFraming(2, 4), score_reduction="max")


class TestCreatePipeline:
    def _config(self, label_file):
        config = get_default_config()
        config["labels"]["path"] = str(label_file)
        config["framing"].update({"height": 2, "width": 4})
        config["ranking"]["top_k"] = 2
        return config

    def test_builds_from_dict_with_injected_engine(self, write_wav, label_file, stub_engine):
        pipeline = create_pipeline(self._config(label_file), engine=stub_engine)

        assert list(pipeline.catalog) == ["dog", "siren", "rain"]
        assert pipeline.ranker.top_k == 2
        result = pipeline.classify(write_wav("clip.wav", _pcm([0.25])))
        assert result.label_names == ["siren", "rain"]

    def test_missing_label_file(self, tmp_path, stub_engine):
        with pytest.raises(LabelLoadError):
            create_pipeline(self._config(tmp_path / "missing.txt"), engine=stub_engine)

    def test_default_engine_loads_onnx_model(self, label_file, tmp_path):
        config = self._config(label_file)
        config["model"]["path"] = str(tmp_path / "absent.onnx")

        # Missing model fails at construction, before any audio is read
        with pytest.raises(ModelLoadError):
            create_pipeline(config)

    def test_engine_built_from_model_section(self, label_file, make_engine):
        config = self._config(label_file)
        config["model"]["providers"] = ["CUDAExecutionProvider", "CPUExecutionProvider"]
        engine = make_engine()

        with patch("soundrank.engines.onnx.create_inference_engine", return_value=engine) as factory:
            pipeline = create_pipeline(config)

        assert pipeline.engine is engine
        factory.assert_called_once_with({
            "path": str(Path("./models/yamnet.onnx")),
            "providers": ["CUDAExecutionProvider", "CPUExecutionProvider"],
            "input_shape": None,
        })
