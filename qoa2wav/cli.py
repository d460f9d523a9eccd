"""Command line interface for qoa2wav"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .core.converter import QOAConverter
from .core.decoder import QOADecoder
from .core.errors import ArgumentError, ConversionError, ConversionIOError
from .utils.config import ConfigManager
from .utils.helpers import setup_logging, get_conversion_logger, format_file_size

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog='qoa2wav',
        description='QOA to WAV Converter',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  qoa2wav music.qoa                     # Writes music.wav
  qoa2wav music.qoa out/track.wav       # Explicit output file
  qoa2wav sounds/                       # Convert every .qoa file in sounds/
  qoa2wav sounds/ wav/                  # Batch convert into wav/
  qoa2wav --convert-files a.qoa b.qoa   # Convert a list of files
  qoa2wav --info music.qoa              # Show stream metadata only
  qoa2wav --create-config config.json   # Create default config file
        """
    )

    parser.add_argument('input', nargs='?',
                        help='QOA file, or directory of QOA files')
    parser.add_argument('output', nargs='?',
                        help='WAV file (or output directory when input is a directory)')

    # Configuration file
    parser.add_argument('--config', type=str,
                        help='Load configuration from JSON file')
    parser.add_argument('--create-config', type=str,
                        help='Create default configuration file at specified path')

    # Conversion behaviour
    parser.add_argument('--skip-existing', action='store_true',
                        help='Skip files whose WAV output already exists')
    parser.add_argument('--verify', action='store_true',
                        help='Re-read each written WAV with libsndfile and check it')

    # Inspection modes
    parser.add_argument('--info', action='store_true',
                        help='Print QOA stream metadata without converting')
    parser.add_argument('--list', action='store_true',
                        help='List convertible files in the input directory')
    parser.add_argument('--convert-files', nargs='+', metavar='FILE',
                        help='Convert specific QOA files (missing or non-QOA files count as failures)')

    # Logging
    parser.add_argument('--logs-dir', type=str,
                        help='Also write logs under this directory')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable debug logging')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    return parser


def resolve_input(args: argparse.Namespace) -> Path:
    """Validate the input argument before any file I/O.

    Raises:
        ArgumentError: If no input was given or it cannot be accessed
    """
    if not args.input:
        raise ArgumentError("No input file or directory given")

    input_path = Path(args.input).expanduser()
    if not input_path.exists():
        raise ArgumentError(f"Cannot access: {input_path}")

    return input_path


def show_info(paths: List[Path]) -> int:
    """Print QOA header metadata for each path."""
    decoder = QOADecoder()
    status = 0

    for path in paths:
        try:
            info = decoder.read_header(path.read_bytes())
        except OSError as e:
            logger.error(f"Error: Cannot open QOA file: {path} ({e.strerror or e})")
            status = 1
            continue
        except ConversionError as e:
            logger.error(f"Error: {path}: {e}")
            status = 1
            continue

        print(f"{path}: {info.samples} samples, {info.channels} channels, "
              f"{info.sample_rate} Hz, {info.duration:.2f}s")

    return status


def convert_single(converter: QOAConverter, input_path: Path, output: Optional[str]) -> int:
    """Convert one file, returning the process exit status."""
    try:
        report = converter.convert(input_path, output)
    except ConversionError as e:
        logger.error(f"Error: {e}")
        return 1

    if report.skipped:
        print(f"⏭️  Skipped: {report.input_path} ({report.output_path} exists)")
        return 0

    print(report.summary())
    print(f"✓ Converted: {report.input_path} -> {report.output_path} "
          f"({format_file_size(report.bytes_written)})")
    return 0


def convert_batch(converter: QOAConverter, directory: Path, output_dir: Optional[str]) -> int:
    """Convert every QOA file in a directory, returning the process exit status."""
    try:
        results = converter.convert_directory(directory, output_dir)
    except ConversionIOError as e:
        logger.error(f"Error: {e}")
        return 1

    if results['total_files'] == 0:
        print(f"No {converter.source_extension} files found in {directory}")
        return 0

    return print_batch_results(results)


def convert_files(converter: QOAConverter, file_paths: List[str], output_dir: Optional[str]) -> int:
    """Convert an explicit list of QOA files, returning the process exit status."""
    try:
        results = converter.convert_specific_files([Path(f).expanduser() for f in file_paths], output_dir)
    except ConversionIOError as e:
        logger.error(f"Error: {e}")
        return 1

    return print_batch_results(results)


def print_batch_results(results: dict) -> int:
    """Print per-file lines and the summary of a batch run."""
    for report in results['reports']:
        print(f"✓ Converted: {report.input_path} -> {report.output_path}")
    for failed_path, message in results['failed_files']:
        print(f"✗ Failed: {failed_path}: {message}", file=sys.stderr)

    print(f"Converted {results['converted']} of {results['total_files']} files "
          f"({results['skipped']} skipped, {results['failed']} failed)")

    return 1 if results['failed'] else 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main function with command line support."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(minimal=True, verbose=args.verbose)

    # Handle config file creation
    if args.create_config:
        try:
            ConfigManager().create_default_config(args.create_config)
        except RuntimeError as e:
            logger.error(f"Configuration error: {e}")
            return 1
        return 0

    # Arguments are checked before any config or log file is touched
    try:
        if args.convert_files:
            if args.input:
                raise ArgumentError("--convert-files cannot be combined with an input path")
            input_path = None
        else:
            input_path = resolve_input(args)
    except ArgumentError as e:
        logger.error(f"Error: {e}")
        parser.print_usage(sys.stderr)
        return 1

    config_manager = ConfigManager()
    try:
        config = config_manager.load_config(args.config)
        # CLI takes precedence over the config file
        config = config_manager.merge_cli_args(config, args)
        get_conversion_logger(config=config, verbose=args.verbose)
    except (FileNotFoundError, ValueError, RuntimeError) as e:
        logger.error(f"Configuration error: {e}")
        return 1

    converter = QOAConverter.from_config(config)

    if args.convert_files:
        return convert_files(converter, args.convert_files, config.output.output_dir)

    if args.list:
        if not input_path.is_dir():
            logger.error(f"Error: --list needs a directory, got {input_path}")
            parser.print_usage(sys.stderr)
            return 1
        files = converter.get_convertible_files_in_directory(input_path)
        if files:
            print(f"Found {len(files)} convertible files in {input_path}:")
            for file_path in files:
                print(f"  {file_path.name}")
        else:
            print(f"No {converter.source_extension} files found in {input_path}")
        return 0

    if args.info:
        if input_path.is_dir():
            return show_info(converter.get_convertible_files_in_directory(input_path))
        return show_info([input_path])

    if input_path.is_dir():
        output_dir = args.output or config.output.output_dir
        return convert_batch(converter, input_path, output_dir)

    return convert_single(converter, input_path, args.output)


if __name__ == '__main__':
    sys.exit(main())
