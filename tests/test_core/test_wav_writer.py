"""Tests for WAV header construction and serialization"""

import io
import struct
import wave

import numpy as np
import pytest
import soundfile as sf

from qoa2wav.core.models import PCMSampleBuffer
from qoa2wav.core.wav_writer import WavHeader, encode_wav, write_wav, WAV_HEADER_SIZE


def _field(data: bytes, offset: int, fmt: str):
    return struct.unpack_from('<' + fmt, data, offset)[0]


class TestWavHeader:
    """Test the derived WAV container descriptor."""

    @pytest.mark.parametrize("sample_rate,channels,frames", [
        (44100, 2, 0),
        (44100, 2, 1),
        (8000, 1, 12345),
        (48000, 6, 5120),
        (22050, 8, 999),
    ])
    def test_size_arithmetic(self, sample_rate, channels, frames):
        """Test byte rate, block align and size fields."""
        header = WavHeader(sample_rate=sample_rate, channel_count=channels, frame_count=frames)
        data = header.to_bytes()

        assert header.data_size == frames * channels * 2
        assert header.block_align == channels * 2
        assert header.byte_rate == sample_rate * channels * 2
        assert _field(data, 4, 'I') == header.data_size + 36
        assert _field(data, 40, 'I') == header.data_size
        assert header.file_size == 44 + header.data_size

    def test_empty_stereo_header_layout(self):
        """Test the byte-exact layout of a header-only file."""
        data = WavHeader(sample_rate=44100, channel_count=2, frame_count=0).to_bytes()

        assert len(data) == WAV_HEADER_SIZE == 44
        assert data[0:4] == b'RIFF'
        assert _field(data, 4, 'I') == 36
        assert data[8:12] == b'WAVE'
        assert data[12:16] == b'fmt '
        assert _field(data, 16, 'I') == 16
        assert _field(data, 20, 'H') == 1
        assert _field(data, 22, 'H') == 2
        assert _field(data, 24, 'I') == 44100
        assert _field(data, 28, 'I') == 176400
        assert _field(data, 32, 'H') == 4
        assert _field(data, 34, 'H') == 16
        assert data[36:40] == b'data'
        assert _field(data, 40, 'I') == 0

    def test_fields_are_little_endian(self):
        """Test multi-byte fields are little-endian byte sequences."""
        data = WavHeader(sample_rate=0x010203, channel_count=1, frame_count=0).to_bytes()
        assert data[24:28] == b'\x03\x02\x01\x00'

    def test_rejects_zero_channels(self):
        with pytest.raises(ValueError, match="channel_count"):
            WavHeader(sample_rate=44100, channel_count=0, frame_count=10).to_bytes()

    def test_rejects_payload_too_large_for_riff(self):
        """Test a payload whose RIFF size overflows 32 bits is refused."""
        header = WavHeader(sample_rate=44100, channel_count=2, frame_count=(0xFFFFFFFF // 4))
        with pytest.raises(ValueError, match="too large"):
            header.to_bytes()


class TestEncodeWav:
    """Test full WAV encoding of PCM buffers."""

    def test_interleaved_payload_order(self, stereo_buffer):
        """Test payload holds L0,R0,L1,R1,L2,R2 as little-endian int16."""
        data = encode_wav(stereo_buffer)

        assert len(data) == 44 + 6 * 2
        assert struct.unpack('<6h', data[44:]) == (100, -100, 2000, -2000, 32767, -32768)
        assert data[44:46] == b'\x64\x00'

    def test_zero_frame_buffer(self):
        """Test a zero-frame buffer produces a 44-byte header-only file."""
        buffer = PCMSampleBuffer(samples=np.array([], dtype=np.int16), channel_count=2, sample_rate=44100)
        data = encode_wav(buffer)

        assert len(data) == 44
        assert _field(data, 40, 'I') == 0

    def test_big_endian_input_array(self):
        """Test samples stored big-endian in memory still serialize little-endian."""
        samples = np.array([1, -2, 300], dtype='>i2')
        buffer = PCMSampleBuffer(samples=samples, channel_count=1, sample_rate=8000)

        assert encode_wav(buffer)[44:] == struct.pack('<3h', 1, -2, 300)

    def test_write_wav_matches_encode(self, stereo_buffer):
        """Test writing to a sink produces the same bytes."""
        sink = io.BytesIO()
        written = write_wav(stereo_buffer, sink)

        assert written == len(sink.getvalue())
        assert sink.getvalue() == encode_wav(stereo_buffer)

    def test_readable_by_wave_module(self, stereo_buffer):
        """Test the stdlib WAV reader accepts the output."""
        with wave.open(io.BytesIO(encode_wav(stereo_buffer)), 'rb') as wav_file:
            assert wav_file.getnchannels() == 2
            assert wav_file.getsampwidth() == 2
            assert wav_file.getframerate() == 44100
            assert wav_file.getnframes() == 3

    def test_readable_by_libsndfile(self, stereo_buffer):
        """Test libsndfile reads back the exact samples."""
        audio, rate = sf.read(io.BytesIO(encode_wav(stereo_buffer)), dtype='int16')

        assert rate == 44100
        assert audio.shape == (3, 2)
        np.testing.assert_array_equal(audio.reshape(-1), stereo_buffer.samples)
