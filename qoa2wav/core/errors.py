"""Exception types raised by the conversion pipeline"""


class ConversionError(Exception):
    """Base class for every failure of a single conversion job."""


class ConversionIOError(ConversionError):
    """Input could not be read, or output could not be created or written."""


class DecodeError(ConversionError, ValueError):
    """The input bytes are not a decodable QOA stream."""


class ArgumentError(ConversionError):
    """Missing or unusable command-line input."""
