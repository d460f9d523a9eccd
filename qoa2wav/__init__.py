"""qoa2wav - Convert "Quite OK Audio" files to PCM WAV

Decodes QOA streams and writes canonical 16-bit PCM WAV files, one file at a
time or for every QOA file in a directory.
"""

__version__ = "1.0.0"
__author__ = "qoa2wav Project"

# Main components for easy importing
from .core.converter import QOAConverter
from .core.decoder import AudioDecoder, QOADecoder
from .core.errors import ConversionError, ConversionIOError, DecodeError, ArgumentError
from .core.models import PCMSampleBuffer, ConversionJob, ConversionReport
from .core.wav_writer import WavHeader, encode_wav, write_wav

__all__ = [
    'QOAConverter',
    'AudioDecoder',
    'QOADecoder',
    'ConversionError',
    'ConversionIOError',
    'DecodeError',
    'ArgumentError',
    'PCMSampleBuffer',
    'ConversionJob',
    'ConversionReport',
    'WavHeader',
    'encode_wav',
    'write_wav'
]
