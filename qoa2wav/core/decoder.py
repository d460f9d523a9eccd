"""Audio decoder backends producing PCM sample buffers"""

import logging
import math
import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from .errors import DecodeError
from .models import PCMSampleBuffer

logger = logging.getLogger(__name__)

QOA_MAGIC = 0x716f6166  # "qoaf"
QOA_MIN_FILESIZE = 16
QOA_MAX_CHANNELS = 8
QOA_SLICE_LEN = 20
QOA_SLICES_PER_FRAME = 256
QOA_FRAME_LEN = QOA_SLICE_LEN * QOA_SLICES_PER_FRAME
QOA_LMS_LEN = 4
QOA_FRAME_HEADER_SIZE = 8
QOA_LMS_STATE_SIZE = QOA_LMS_LEN * 4  # history + weights, s16 each

QOA_SCALEFACTOR_TAB = (1, 7, 21, 45, 84, 138, 211, 304, 421, 562, 731, 928, 1157, 1419, 1715, 2048)
_DEQUANT_STEPS = (0.75, -0.75, 2.5, -2.5, 4.5, -4.5, 7.0, -7.0)


def _round_half_away(value: float) -> int:
    magnitude = int(math.floor(abs(value) + 0.5))
    return magnitude if value >= 0 else -magnitude


QOA_DEQUANT_TAB = tuple(
    tuple(_round_half_away(scalefactor * step) for step in _DEQUANT_STEPS)
    for scalefactor in QOA_SCALEFACTOR_TAB
)

def min_stream_size(samples: int, channels: int) -> int:
    """Smallest possible QOA file holding the given samples per channel."""
    frames = (samples + QOA_FRAME_LEN - 1) // QOA_FRAME_LEN
    slices = (samples + QOA_SLICE_LEN - 1) // QOA_SLICE_LEN
    return (8 + frames * (QOA_FRAME_HEADER_SIZE + QOA_LMS_STATE_SIZE * channels)
            + slices * channels * 8)


_U64 = struct.Struct('>Q')
_LMS_STATE = struct.Struct('>4h4h')


class AudioDecoder(ABC):
    """Capability interface for turning encoded bytes into PCM."""

    name = "abstract"
    extensions: Tuple[str, ...] = ()

    @abstractmethod
    def decode(self, raw_bytes: bytes) -> PCMSampleBuffer:
        """Decode a complete, fully-buffered input.

        Raises:
            DecodeError: If the input cannot be decoded. No partial result
                is returned.
        """


@dataclass(frozen=True)
class QOAStreamInfo:
    """Metadata from the QOA file header and first frame header."""
    channels: int
    sample_rate: int
    samples: int

    @property
    def duration(self) -> float:
        return self.samples / self.sample_rate


class QOADecoder(AudioDecoder):
    """Decoder for "Quite OK Audio" streams.

    All multi-byte fields in a QOA file are big-endian. A file is an 8-byte
    header (magic, samples per channel) followed by frames. Each frame holds
    a frame header, the LMS predictor state of every channel and up to 256
    slices per channel, each slice packing a 4-bit scale factor index and
    twenty 3-bit quantized residuals into 64 bits.
    """

    name = "qoa"
    extensions = ('.qoa',)

    def read_header(self, raw_bytes: bytes) -> QOAStreamInfo:
        """Parse stream metadata without decoding any frames.

        Raises:
            DecodeError: If the header is missing or invalid
        """
        if not raw_bytes:
            raise DecodeError("Input is empty")
        if len(raw_bytes) < QOA_MIN_FILESIZE:
            raise DecodeError(f"Input is too short for a QOA file ({len(raw_bytes)} bytes)")

        file_header, = _U64.unpack_from(raw_bytes, 0)
        if (file_header >> 32) != QOA_MAGIC:
            raise DecodeError("Missing QOA magic 'qoaf'")

        samples = file_header & 0xFFFFFFFF
        if samples == 0:
            raise DecodeError("QOA header declares zero samples (streaming files are not supported)")

        # Channel count and sample rate come from the first frame header
        frame_header, = _U64.unpack_from(raw_bytes, 8)
        channels = (frame_header >> 56) & 0xFF
        sample_rate = (frame_header >> 32) & 0xFFFFFF

        if channels == 0 or sample_rate == 0:
            raise DecodeError(f"Invalid QOA frame header: {channels} channels, {sample_rate} Hz")
        if channels > QOA_MAX_CHANNELS:
            raise DecodeError(f"QOA supports at most {QOA_MAX_CHANNELS} channels, got {channels}")

        return QOAStreamInfo(channels=channels, sample_rate=sample_rate, samples=samples)

    def decode(self, raw_bytes: bytes) -> PCMSampleBuffer:
        info = self.read_header(raw_bytes)
        channels = info.channels

        # The header sample count is untrusted until frames back it up
        required = min_stream_size(info.samples, channels)
        if required > len(raw_bytes):
            raise DecodeError(
                f"Truncated QOA stream: {info.samples} samples need at least {required} bytes, "
                f"file has {len(raw_bytes)}"
            )

        frames = []
        position = 8
        sample_index = 0

        while sample_index < info.samples:
            frame, frame_size = self._decode_frame(raw_bytes, position, info, sample_index)
            frames.append(frame.reshape(-1))
            position += frame_size
            sample_index += len(frame)

        if position < len(raw_bytes):
            logger.debug(f"Ignoring {len(raw_bytes) - position} trailing bytes after last QOA frame")

        logger.debug(f"Decoded QOA: {info.samples} samples, {channels} channels, {info.sample_rate} Hz")
        return PCMSampleBuffer(samples=np.concatenate(frames), channel_count=channels,
                               sample_rate=info.sample_rate)

    def _decode_frame(self, raw_bytes: bytes, position: int, info: QOAStreamInfo,
                      sample_index: int) -> Tuple[np.ndarray, int]:
        """Decode one frame, returning its (frame_len, channels) samples and its size in bytes."""
        channels = info.channels
        remaining = len(raw_bytes) - position
        min_frame_size = QOA_FRAME_HEADER_SIZE + QOA_LMS_STATE_SIZE * channels

        if remaining < min_frame_size:
            raise DecodeError(
                f"Truncated QOA stream: expected {info.samples} samples, decoded {sample_index}"
            )

        frame_header, = _U64.unpack_from(raw_bytes, position)
        frame_channels = (frame_header >> 56) & 0xFF
        frame_rate = (frame_header >> 32) & 0xFFFFFF
        frame_len = (frame_header >> 16) & 0xFFFF
        frame_size = frame_header & 0xFFFF

        if frame_channels != channels or frame_rate != info.sample_rate:
            raise DecodeError(
                f"QOA frame at byte {position} changes stream format "
                f"({frame_channels} ch, {frame_rate} Hz)"
            )
        if frame_len == 0 or frame_len > QOA_FRAME_LEN:
            raise DecodeError(f"QOA frame at byte {position} has invalid length {frame_len}")
        if sample_index + frame_len > info.samples:
            raise DecodeError(f"QOA frame at byte {position} runs past the declared sample count")
        if frame_size < min_frame_size:
            raise DecodeError(f"QOA frame at byte {position} has invalid size {frame_size}")
        if frame_size > remaining:
            raise DecodeError(
                f"Truncated QOA stream: frame at byte {position} needs {frame_size} bytes, "
                f"{remaining} available"
            )

        num_slices = (frame_size - min_frame_size) // 8
        slice_rows = (frame_len + QOA_SLICE_LEN - 1) // QOA_SLICE_LEN
        if slice_rows * channels > num_slices:
            raise DecodeError(f"QOA frame at byte {position} is too small for {frame_len} samples")

        lms_states = []
        p = position + QOA_FRAME_HEADER_SIZE
        for _ in range(channels):
            state = _LMS_STATE.unpack_from(raw_bytes, p)
            lms_states.append((list(state[:QOA_LMS_LEN]), list(state[QOA_LMS_LEN:])))
            p += QOA_LMS_STATE_SIZE

        slices = np.frombuffer(raw_bytes, dtype='>u8', count=slice_rows * channels, offset=p).tolist()

        frame = np.empty((frame_len, channels), dtype=np.int16)
        for c in range(channels):
            history, weights = lms_states[c]
            frame[:, c] = self._decode_channel(slices[c::channels], frame_len, history, weights)

        return frame, frame_size

    @staticmethod
    def _decode_channel(slices: List[int], frame_len: int,
                        history: List[int], weights: List[int]) -> List[int]:
        """Run the LMS predictor over one channel's slices of a frame."""
        h0, h1, h2, h3 = history
        w0, w1, w2, w3 = weights
        decoded = []

        for row, slice_value in enumerate(slices):
            dequant = QOA_DEQUANT_TAB[(slice_value >> 60) & 0xF]
            count = min(QOA_SLICE_LEN, frame_len - row * QOA_SLICE_LEN)
            shift = 57

            for _ in range(count):
                predicted = (h0 * w0 + h1 * w1 + h2 * w2 + h3 * w3) >> 13
                dequantized = dequant[(slice_value >> shift) & 0x7]
                shift -= 3

                reconstructed = predicted + dequantized
                if reconstructed > 32767:
                    reconstructed = 32767
                elif reconstructed < -32768:
                    reconstructed = -32768

                delta = dequantized >> 4
                w0 += -delta if h0 < 0 else delta
                w1 += -delta if h1 < 0 else delta
                w2 += -delta if h2 < 0 else delta
                w3 += -delta if h3 < 0 else delta
                h0, h1, h2, h3 = h1, h2, h3, reconstructed

                decoded.append(reconstructed)

        return decoded
