"""Canonical 44-byte-header PCM WAV serialization"""

import logging
import struct
from dataclasses import dataclass
from typing import BinaryIO

from .models import PCMSampleBuffer

logger = logging.getLogger(__name__)

WAV_HEADER_SIZE = 44
BITS_PER_SAMPLE = 16
BYTES_PER_SAMPLE = BITS_PER_SAMPLE // 8
PCM_FORMAT = 1
FMT_CHUNK_SIZE = 16

# RIFF size counts everything after the 8-byte "RIFF" + size prefix
RIFF_SIZE_OFFSET = WAV_HEADER_SIZE - 8

MAX_U32 = 0xFFFFFFFF

# Little-endian field layout, no padding
_HEADER_STRUCT = struct.Struct('<4sI4s4sIHHIIHH4sI')


@dataclass(frozen=True)
class WavHeader:
    """Derived description of a 16-bit PCM WAV container."""
    sample_rate: int
    channel_count: int
    frame_count: int
    bits_per_sample: int = BITS_PER_SAMPLE

    @property
    def block_align(self) -> int:
        return self.channel_count * BYTES_PER_SAMPLE

    @property
    def byte_rate(self) -> int:
        return self.sample_rate * self.block_align

    @property
    def data_size(self) -> int:
        return self.frame_count * self.block_align

    @property
    def riff_size(self) -> int:
        return self.data_size + RIFF_SIZE_OFFSET

    @property
    def file_size(self) -> int:
        """Total length of the serialized container in bytes."""
        return WAV_HEADER_SIZE + self.data_size

    @classmethod
    def for_buffer(cls, buffer: PCMSampleBuffer) -> 'WavHeader':
        return cls(
            sample_rate=buffer.sample_rate,
            channel_count=buffer.channel_count,
            frame_count=buffer.frame_count
        )

    def validate(self):
        """Check that every field fits its on-disk width.

        Raises:
            ValueError: If a field is out of range for the WAV format
        """
        if self.channel_count <= 0:
            raise ValueError(f"channel_count must be positive, got {self.channel_count}")
        if self.channel_count > 0xFFFF:
            raise ValueError(f"channel_count {self.channel_count} does not fit a 16-bit field")
        if self.frame_count < 0:
            raise ValueError(f"frame_count must not be negative, got {self.frame_count}")
        if not 0 < self.sample_rate <= MAX_U32:
            raise ValueError(f"sample_rate {self.sample_rate} does not fit a 32-bit field")
        if self.byte_rate > MAX_U32:
            raise ValueError(f"byte_rate {self.byte_rate} does not fit a 32-bit field")
        if self.riff_size > MAX_U32:
            raise ValueError(
                f"Audio payload of {self.data_size} bytes is too large for a WAV file"
            )

    def to_bytes(self) -> bytes:
        """Serialize the 44 header bytes."""
        self.validate()
        return _HEADER_STRUCT.pack(
            b'RIFF',
            self.riff_size,
            b'WAVE',
            b'fmt ',
            FMT_CHUNK_SIZE,
            PCM_FORMAT,
            self.channel_count,
            self.sample_rate,
            self.byte_rate,
            self.block_align,
            self.bits_per_sample,
            b'data',
            self.data_size
        )


def _payload_bytes(buffer: PCMSampleBuffer) -> bytes:
    """Interleaved samples as little-endian int16 bytes."""
    return buffer.samples.astype('<i2', copy=False).tobytes()


def encode_wav(buffer: PCMSampleBuffer) -> bytes:
    """Encode a PCM buffer as a complete WAV byte string.

    Args:
        buffer: Decoded PCM samples and metadata

    Returns:
        Header followed by the sample payload, 44 + data_size bytes

    Raises:
        ValueError: If the buffer cannot be described by a WAV header
    """
    header = WavHeader.for_buffer(buffer)
    return header.to_bytes() + _payload_bytes(buffer)


def write_wav(buffer: PCMSampleBuffer, sink: BinaryIO) -> int:
    """Write a PCM buffer as WAV to a binary file-like object.

    The header is fully serialized before anything is written, then emitted
    as one contiguous prefix followed by the payload.

    Returns:
        Number of bytes written
    """
    header = WavHeader.for_buffer(buffer)
    header_bytes = header.to_bytes()
    payload = _payload_bytes(buffer)

    sink.write(header_bytes)
    sink.write(payload)

    written = len(header_bytes) + len(payload)
    logger.debug(f"Wrote WAV: {header.channel_count} ch, {header.sample_rate} Hz, "
                 f"{header.frame_count} frames, {written} bytes")
    return written
