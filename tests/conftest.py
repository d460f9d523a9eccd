"""Shared test fixtures for qoa2wav"""

import logging
import shutil
import tempfile
from pathlib import Path

import numpy as np
import pytest

from qoa2wav.core.models import PCMSampleBuffer
from tests.fixtures.qoa_fixtures import encode_qoa, sine_wave


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield Path(temp_dir)
    shutil.rmtree(temp_dir)


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers installed by setup_logging so file handles are closed."""
    yield
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)
        handler.close()


@pytest.fixture
def stereo_buffer():
    """2-channel, 3-frame buffer [L0, R0, L1, R1, L2, R2]."""
    samples = np.array([100, -100, 2000, -2000, 32767, -32768], dtype=np.int16)
    return PCMSampleBuffer(samples=samples, channel_count=2, sample_rate=44100)


@pytest.fixture(scope="session")
def sine_samples():
    """A tenth of a second of 2-channel 22.05 kHz sine, interleaved."""
    return sine_wave(frames=2205, channels=2, sample_rate=22050)


@pytest.fixture(scope="session")
def qoa_bytes(sine_samples):
    """A valid 2-channel QOA stream of the sine_samples fixture."""
    return encode_qoa(sine_samples, channels=2, sample_rate=22050)


@pytest.fixture(scope="session")
def mono_qoa_bytes():
    """A short valid mono QOA stream with a partial final slice."""
    return encode_qoa(sine_wave(frames=250, channels=1, sample_rate=8000), channels=1, sample_rate=8000)


@pytest.fixture
def qoa_file(temp_dir, qoa_bytes):
    """A valid .qoa file on disk."""
    path = temp_dir / "track.qoa"
    path.write_bytes(qoa_bytes)
    return path


@pytest.fixture
def corrupt_qoa_file(temp_dir, qoa_bytes):
    """A .qoa file cut off in the middle of its first frame."""
    path = temp_dir / "broken.qoa"
    path.write_bytes(qoa_bytes[:200])
    return path
