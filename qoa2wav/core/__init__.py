"""Core conversion components"""

from .models import PCMSampleBuffer, ConversionJob, ConversionReport, derive_output_path
from .errors import ConversionError, ConversionIOError, DecodeError, ArgumentError
from .decoder import AudioDecoder, QOADecoder, QOAStreamInfo
from .wav_writer import WavHeader, encode_wav, write_wav
from .converter import QOAConverter

__all__ = [
    'PCMSampleBuffer', 'ConversionJob', 'ConversionReport', 'derive_output_path',
    'ConversionError', 'ConversionIOError', 'DecodeError', 'ArgumentError',
    'AudioDecoder', 'QOADecoder', 'QOAStreamInfo',
    'WavHeader', 'encode_wav', 'write_wav',
    'QOAConverter'
]
