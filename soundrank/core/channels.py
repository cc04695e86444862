"""
Channel reduction: folds interleaved stereo samples into mono.
"""

import logging

import numpy as np

from soundrank.core.models import MonoBuffer, SampleBuffer
from soundrank.utils.errors import UnsupportedChannelLayoutError

logger = logging.getLogger(__name__)


def reduce_to_mono(buffer: SampleBuffer) -> MonoBuffer:
    """
    Reduce a SampleBuffer to a single channel.

    Stereo input is paired as (left, right) and each pair averaged; a
    trailing unpaired sample is dropped. Mono input passes through with
    its samples unchanged.

    Args:
        buffer: Decoded samples, interleaved if stereo

    Returns:
        MonoBuffer: Single-channel samples at the source rate

    Raises:
        UnsupportedChannelLayoutError: Channel count is not 1 or 2
    """
    if buffer.channels == 1:
        return MonoBuffer(samples=buffer.samples, sample_rate=buffer.sample_rate)

    if buffer.channels != 2:
        raise UnsupportedChannelLayoutError(buffer.channels)

    samples = np.asarray(buffer.samples, dtype=np.float32)
    pairs = len(samples) // 2
    if len(samples) % 2:
        logger.debug("Dropping trailing unpaired stereo sample")

    frames = samples[:pairs * 2].reshape(pairs, 2)
    mono = (frames[:, 0] + frames[:, 1]) / np.float32(2.0)

    return MonoBuffer(samples=mono.astype(np.float32), sample_rate=buffer.sample_rate)
