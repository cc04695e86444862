"""
Audio loader for the classification pipeline.

Decodes PCM containers into normalized SampleBuffers. No resampling is
done here: input files are expected to be at the model's sample rate
already.
"""

import logging
from pathlib import Path
from typing import Dict, Union

import numpy as np
import soundfile as sf

from soundrank.core.models import SampleBuffer
from soundrank.utils.errors import AudioLoadError, FormatError


# Bit width of each integer subtype libsndfile can decode
INTEGER_SUBTYPE_BITS: Dict[str, int] = {
    'PCM_S8': 8,
    'PCM_U8': 8,
    'PCM_16': 16,
    'PCM_24': 24,
    'PCM_32': 32,
}

logger = logging.getLogger(__name__)


def integer_full_scale(bits: int) -> int:
    """Largest positive value of a signed integer sample of *bits* width."""
    return (1 << (bits - 1)) - 1


def normalize_integer_samples(raw: np.ndarray, bits: int) -> np.ndarray:
    """
    Map left-justified int32 samples of the given width onto [-1.0, +1.0].

    libsndfile returns every integer encoding left-justified in 32 bits,
    so the native value is recovered with an arithmetic shift before
    dividing by the width's full-scale magnitude. The single most
    negative code (e.g. -32768) lands just below -1.0 and is clipped.
    """
    native = np.right_shift(raw.astype(np.int32), 32 - bits)
    scaled = native.astype(np.float64) / integer_full_scale(bits)
    return np.clip(scaled, -1.0, 1.0).astype(np.float32)


def drop_undecodable(samples: np.ndarray) -> np.ndarray:
    """
    Remove samples that did not decode to a finite value.

    Dropped samples are excluded silently; the read is not aborted.
    """
    finite = np.isfinite(samples)
    dropped = int(samples.size - np.count_nonzero(finite))
    if dropped:
        logger.debug(f"Dropped {dropped} undecodable sample(s)")
        samples = samples[finite]
    return samples


class AudioLoader:
    """
    Loads audio files and creates SampleBuffer instances.

    Stateless; a single instance can be reused across runs.
    """

    def load(self, file_path: Union[str, Path]) -> SampleBuffer:
        """
        Load an audio file into a normalized SampleBuffer.

        Args:
            file_path: Path to a mono or stereo PCM container

        Returns:
            SampleBuffer: Interleaved samples in [-1.0, +1.0]

        Raises:
            AudioLoadError: File cannot be opened or read
            FormatError: Container header cannot be parsed
        """
        file_path = Path(file_path)

        try:
            handle = open(file_path, 'rb')
        except OSError as e:
            raise AudioLoadError(
                f"Cannot open audio file {file_path}: {e.strerror or e}",
                file_path=str(file_path)
            ) from e

        with handle:
            try:
                sound = sf.SoundFile(handle)
            except (sf.SoundFileError, TypeError, RuntimeError) as e:
                # Headerless formats such as RAW raise TypeError (no samplerate)
                raise FormatError(
                    f"Cannot parse audio container {file_path}: {e}",
                    format=file_path.suffix.lstrip('.').upper() or None
                ) from e

            with sound:
                logger.info(
                    f"Loading audio: {sound.samplerate} Hz, "
                    f"{sound.channels} ch, {sound.subtype}"
                )
                try:
                    samples = self._read_samples(sound)
                except (sf.SoundFileError, OSError) as e:
                    raise AudioLoadError(
                        f"Failed to read audio data from {file_path}: {e}",
                        file_path=str(file_path)
                    ) from e

                buffer = SampleBuffer(
                    samples=samples,
                    channels=sound.channels,
                    sample_rate=sound.samplerate,
                    file_path=file_path,
                    subtype=sound.subtype,
                )

        logger.debug(
            f"Decoded {buffer.samples.size} samples "
            f"({buffer.duration:.3f}s) from {file_path.name}"
        )
        return buffer

    def _read_samples(self, sound: sf.SoundFile) -> np.ndarray:
        """Read every frame and return the interleaved, normalized samples."""
        bits = INTEGER_SUBTYPE_BITS.get(sound.subtype)

        if bits is not None:
            raw = sound.read(dtype='int32', always_2d=False)
            return normalize_integer_samples(raw.reshape(-1), bits)

        # Float and compressed encodings decode to floats directly
        raw = sound.read(dtype='float64', always_2d=False)
        samples = drop_undecodable(raw.reshape(-1))
        return np.clip(samples, -1.0, 1.0).astype(np.float32)
