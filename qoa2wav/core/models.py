"""Core data models for the QOA to WAV conversion pipeline"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

import numpy as np


@dataclass
class PCMSampleBuffer:
    """Interleaved 16-bit PCM samples plus the stream metadata.

    Samples are ordered frame by frame: frame 0 channel 0, frame 0 channel 1,
    ..., frame 1 channel 0, and so on.
    """
    samples: np.ndarray
    channel_count: int
    sample_rate: int

    def __post_init__(self):
        if self.channel_count <= 0:
            raise ValueError(f"channel_count must be positive, got {self.channel_count}")
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")

        self.samples = np.ascontiguousarray(self.samples, dtype=np.int16).reshape(-1)

        if len(self.samples) % self.channel_count != 0:
            raise ValueError(
                f"Sample count {len(self.samples)} is not a multiple of "
                f"channel_count {self.channel_count}"
            )

    @property
    def frame_count(self) -> int:
        """Number of frames (one sample per channel)."""
        return len(self.samples) // self.channel_count

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return self.frame_count / self.sample_rate

    @classmethod
    def from_frames(cls, frames: np.ndarray, sample_rate: int) -> 'PCMSampleBuffer':
        """Build a buffer from a (frames, channels) array, or a 1-D mono array."""
        frames = np.asarray(frames)
        if frames.ndim == 1:
            return cls(samples=frames, channel_count=1, sample_rate=sample_rate)
        if frames.ndim != 2:
            raise ValueError(f"Expected a 1-D or 2-D array, got {frames.ndim} dimensions")
        return cls(samples=frames.reshape(-1), channel_count=frames.shape[1], sample_rate=sample_rate)


@dataclass
class ConversionJob:
    """One input file to one output file."""
    input_path: Path
    output_path: Optional[Path] = None
    target_extension: str = ".wav"

    def __post_init__(self):
        self.input_path = Path(self.input_path)
        if self.output_path is None:
            self.output_path = derive_output_path(self.input_path, self.target_extension)
        else:
            self.output_path = Path(self.output_path)


@dataclass
class ConversionReport:
    """Outcome of a successful conversion, for display."""
    input_path: Path
    output_path: Path
    frame_count: int
    channel_count: int
    sample_rate: int
    bytes_written: int = 0
    skipped: bool = field(default=False)

    @property
    def duration(self) -> float:
        """Duration of the converted audio in seconds."""
        if self.sample_rate <= 0:
            return 0.0
        return self.frame_count / self.sample_rate

    def summary(self) -> str:
        """Short human-readable description of the decoded stream."""
        return (f"Decoded: {self.frame_count} samples, {self.channel_count} channels, "
                f"{self.sample_rate} Hz")


def derive_output_path(input_path: Union[str, Path], target_extension: str = ".wav") -> Path:
    """Replace the input's extension with target_extension.

    Names without an extension (including dotfiles like ".hidden") get the
    extension appended instead.

    Args:
        input_path: Source file path
        target_extension: Extension including the leading dot

    Returns:
        Output path next to the input
    """
    path = Path(input_path)
    if path.suffix:
        return path.with_suffix(target_extension)
    return path.with_name(path.name + target_extension)
