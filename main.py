"""
soundrank - Main Entry Point

Example usage:
    python main.py path/to/audio.wav
    python main.py --config config/config.yaml --top-k 10 path/to/audio.wav
"""

import sys

from soundrank.cli import main


if __name__ == "__main__":
    sys.exit(main())
