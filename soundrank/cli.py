"""
soundrank - Sound event classification CLI

Classifies an audio file with a pretrained model and prints the top-K
labels, one per line.

Example usage:
    soundrank path/to/audio.wav
    soundrank --preset waveform --top-k 10 path/to/audio.wav
    soundrank --format kv --model models/yamnet.onnx path/to/audio.wav
    soundrank --config config/config.yaml --output result.json --format json clip.wav
"""

import argparse
import io
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from soundrank.core.pipeline import create_pipeline
from soundrank.core.result_writer import create_result_writer
from soundrank.utils.config import ConfigManager, apply_preset, load_config
from soundrank.utils.errors import SoundRankError
from soundrank.utils.logging import configure_logging

logger = logging.getLogger("soundrank.cli")


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="soundrank",
        description="Classify an audio clip with a pretrained sound event model"
    )
    parser.add_argument(
        "audio_file",
        type=Path,
        help="Path to a mono or stereo PCM audio file at the model's sample rate"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file"
    )
    parser.add_argument(
        "--preset",
        default=None,
        help="Named preset from the configuration (e.g. patch, waveform)"
    )
    parser.add_argument("--model", type=Path, default=None, help="Path to the ONNX model")
    parser.add_argument("--labels", type=Path, default=None, help="Path to the label file")
    parser.add_argument(
        "--framing",
        choices=["fixed", "flat"],
        default=None,
        help="Framing policy: fixed height x width grid, or flat raw waveform"
    )
    parser.add_argument("--height", type=int, default=None, help="Fixed frame height")
    parser.add_argument("--width", type=int, default=None, help="Fixed frame width")
    parser.add_argument("--top-k", type=int, default=None, help="Number of labels to report")
    parser.add_argument(
        "--reduction",
        choices=["first", "mean"],
        default=None,
        help="How to reduce multi-row model output to one score per class"
    )
    parser.add_argument(
        "--format",
        choices=["text", "kv", "json"],
        default=None,
        help="Output format"
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write results to this file instead of stdout"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging"
    )
    return parser


def apply_overrides(config: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    """Apply command-line overrides on top of the loaded configuration."""
    manager = ConfigManager(config)
    overrides = {
        "model.path": str(args.model) if args.model else None,
        "labels.path": str(args.labels) if args.labels else None,
        "framing.policy": args.framing,
        "framing.height": args.height,
        "framing.width": args.width,
        "ranking.top_k": args.top_k,
        "ranking.score_reduction": args.reduction,
        "output.format": args.format,
    }
    for key, value in overrides.items():
        if value is not None:
            manager.set(key, value)
    return manager.to_dict()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point. Returns the process exit status."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(str(args.config) if args.config else None)
        if args.preset:
            config = apply_preset(config, args.preset)
        config = apply_overrides(config, args)
        configure_logging(config.get("logging"), verbose=args.verbose)
    except (SoundRankError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        writer = create_result_writer((config.get("output") or {}).get("format") or "text")
        with create_pipeline(config) as pipeline:
            result = pipeline.classify(args.audio_file)

        # Render fully before emitting so a failure prints nothing
        rendered = io.StringIO()
        writer.write(result, rendered)

        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(rendered.getvalue(), encoding="utf-8")
            logger.info(f"Results written to: {args.output}")
        else:
            sys.stdout.write(rendered.getvalue())
    except (SoundRankError, OSError, ValueError) as e:
        logger.debug("Classification failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
