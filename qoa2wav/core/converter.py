"""QOA to WAV conversion orchestration for single files and directories"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Dict, Any, Union

from .decoder import AudioDecoder, QOADecoder
from .errors import ConversionError, ConversionIOError
from .models import ConversionJob, ConversionReport, PCMSampleBuffer, derive_output_path
from .wav_writer import write_wav

logger = logging.getLogger(__name__)


class QOAConverter:
    """Convert QOA files to 16-bit PCM WAV files."""

    def __init__(self, decoder: Optional[AudioDecoder] = None, source_extension: str = '.qoa',
                 target_extension: str = '.wav', skip_existing: bool = False,
                 verify_output: bool = False):
        """
        Initialize the converter.

        Args:
            decoder: Decoder backend (defaults to the native QOA decoder)
            source_extension: Extension of files picked up in batch mode
            target_extension: Extension substituted for derived output paths
            skip_existing: Skip jobs whose output already exists
            verify_output: Re-read each written file with libsndfile
        """
        self.decoder = decoder if decoder is not None else QOADecoder()
        self.source_extension = source_extension.lower()
        self.target_extension = target_extension
        self.skip_existing = skip_existing
        self.verify_output = verify_output

    @classmethod
    def from_config(cls, config, decoder: Optional[AudioDecoder] = None) -> 'QOAConverter':
        """Build a converter from a QOA2WavConfig."""
        return cls(
            decoder=decoder,
            source_extension=config.conversion.source_extension,
            target_extension=config.conversion.target_extension,
            skip_existing=config.conversion.skip_existing,
            verify_output=config.conversion.verify_output
        )

    def derive_output_path(self, input_path: Union[str, Path]) -> Path:
        return derive_output_path(input_path, self.target_extension)

    def is_convertible(self, path: Path) -> bool:
        return path.is_file() and path.suffix.lower() == self.source_extension

    def get_convertible_files_in_directory(self, directory: Path) -> List[Path]:
        """
        Get the QOA files directly inside a directory.

        Args:
            directory: Directory to search (not recursed)

        Returns:
            Sorted list of matching files
        """
        return sorted(path for path in Path(directory).iterdir() if self.is_convertible(path))

    def read_input(self, input_path: Path) -> bytes:
        """Read an entire input file into memory."""
        try:
            return Path(input_path).read_bytes()
        except OSError as e:
            raise ConversionIOError(f"Cannot open input file: {input_path} ({e.strerror or e})") from e

    def decode(self, raw_bytes: bytes) -> PCMSampleBuffer:
        return self.decoder.decode(raw_bytes)

    def convert(self, input_path: Union[str, Path],
                output_path: Optional[Union[str, Path]] = None) -> ConversionReport:
        """
        Convert one QOA file to WAV.

        Args:
            input_path: QOA file to read
            output_path: WAV file to write (derived from input_path if omitted)

        Returns:
            ConversionReport describing the decoded stream

        Raises:
            ConversionIOError: If the input cannot be read or the output cannot be written
            DecodeError: If the input is not a decodable QOA stream
        """
        job = ConversionJob(input_path, output_path, target_extension=self.target_extension)
        return self.run_job(job)

    def run_job(self, job: ConversionJob) -> ConversionReport:
        """Execute a single conversion job."""
        if self.skip_existing and job.output_path.exists():
            logger.info(f"⏭️  Skipping {job.input_path.name} (output exists: {job.output_path})")
            return ConversionReport(
                input_path=job.input_path,
                output_path=job.output_path,
                frame_count=0,
                channel_count=0,
                sample_rate=0,
                skipped=True
            )

        raw_bytes = self.read_input(job.input_path)
        logger.debug(f"Read {len(raw_bytes)} bytes from {job.input_path}")

        buffer = self.decode(raw_bytes)
        del raw_bytes

        bytes_written = self._write_output(buffer, job.output_path)

        report = ConversionReport(
            input_path=job.input_path,
            output_path=job.output_path,
            frame_count=buffer.frame_count,
            channel_count=buffer.channel_count,
            sample_rate=buffer.sample_rate,
            bytes_written=bytes_written
        )

        if self.verify_output:
            self._verify(report)

        logger.info(f"✅ Converted: {job.input_path} -> {job.output_path} "
                    f"({report.duration:.1f}s, {report.channel_count} ch, {report.sample_rate} Hz)")
        return report

    def _write_output(self, buffer: PCMSampleBuffer, output_path: Path) -> int:
        """Write the WAV to a temporary file that replaces output_path on success."""
        temp_path = output_path.with_name(f".{output_path.name}.part")
        try:
            with open(temp_path, 'wb') as sink:
                bytes_written = write_wav(buffer, sink)
            os.replace(temp_path, output_path)
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            raise ConversionIOError(f"Cannot create WAV file: {output_path} ({e.strerror or e})") from e
        except ValueError as e:
            temp_path.unlink(missing_ok=True)
            raise ConversionError(f"Cannot encode WAV file: {output_path} ({e})") from e
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise

        return bytes_written

    def _verify(self, report: ConversionReport):
        """Re-open the output with libsndfile and compare against the report."""
        import soundfile as sf

        try:
            info = sf.info(str(report.output_path))
        except RuntimeError as e:
            report.output_path.unlink(missing_ok=True)
            raise ConversionError(f"Written WAV is unreadable: {report.output_path} ({e})") from e

        expected = (report.frame_count, report.channel_count, report.sample_rate)
        actual = (info.frames, info.channels, info.samplerate)
        if actual != expected:
            report.output_path.unlink(missing_ok=True)
            raise ConversionError(
                f"Written WAV does not match decoded stream: expected "
                f"{expected[0]} frames/{expected[1]} ch/{expected[2]} Hz, got "
                f"{actual[0]} frames/{actual[1]} ch/{actual[2]} Hz"
            )
        logger.debug(f"Verified {report.output_path} ({info.subtype})")

    def convert_directory(self, directory: Union[str, Path],
                          output_dir: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
        """
        Convert every QOA file directly inside a directory.

        Args:
            directory: Directory to convert files from
            output_dir: Directory for the WAV files (defaults to beside each input)

        Returns:
            Dictionary with conversion results summary
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise ConversionIOError(f"Directory not found: {directory}")

        logger.info(f"🔍 Finding {self.source_extension} files in: {directory}")

        try:
            files_to_convert = self.get_convertible_files_in_directory(directory)
        except OSError as e:
            raise ConversionIOError(f"Cannot list directory: {directory} ({e.strerror or e})") from e

        if not files_to_convert:
            logger.info(f"📁 No {self.source_extension} files found in {directory}")
            return self._empty_results()

        if output_dir is not None:
            output_dir = Path(output_dir)
            try:
                output_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise ConversionIOError(f"Cannot create output directory: {output_dir} ({e.strerror or e})") from e

        logger.info(f"📁 Found {len(files_to_convert)} convertible files")
        return self._convert_file_batch(files_to_convert, output_dir)

    def convert_specific_files(self, file_paths: List[Path],
                               output_dir: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
        """
        Convert an explicit list of QOA files.

        Missing files and files with the wrong extension count as failures.
        """
        results = self._empty_results()
        valid_files = []

        for file_path in map(Path, file_paths):
            if not file_path.exists():
                message = f"File not found: {file_path}"
            elif file_path.suffix.lower() != self.source_extension:
                message = f"Unsupported format: {file_path} (expected {self.source_extension})"
            else:
                valid_files.append(file_path)
                continue
            logger.error(f"❌ {message}")
            results['total_files'] += 1
            results['failed'] += 1
            results['failed_files'].append((str(file_path), message))

        if valid_files:
            if output_dir is not None:
                output_dir = Path(output_dir)
                try:
                    output_dir.mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    raise ConversionIOError(f"Cannot create output directory: {output_dir} ({e.strerror or e})") from e
            batch = self._convert_file_batch(valid_files, output_dir)
            for key in ('total_files', 'converted', 'skipped', 'failed'):
                results[key] += batch[key]
            for key in ('converted_files', 'failed_files', 'reports'):
                results[key].extend(batch[key])

        return results

    def _output_for(self, input_path: Path, output_dir: Optional[Path]) -> Path:
        derived = self.derive_output_path(input_path)
        if output_dir is None:
            return derived
        return output_dir / derived.name

    def _convert_file_batch(self, file_paths: List[Path], output_dir: Optional[Path] = None) -> Dict[str, Any]:
        """
        Convert a batch of files, one independent job each.

        Args:
            file_paths: List of file paths to convert
            output_dir: Optional destination directory

        Returns:
            Dictionary with conversion results
        """
        results = self._empty_results()
        results['total_files'] = len(file_paths)

        for i, file_path in enumerate(file_paths, 1):
            logger.info(f"📄 Processing file {i}/{len(file_paths)}: {file_path.name}")
            job = ConversionJob(file_path, self._output_for(file_path, output_dir),
                                target_extension=self.target_extension)

            try:
                report = self.run_job(job)
            except ConversionError as e:
                logger.error(f"❌ Failed to convert {file_path.name}: {e}")
                results['failed'] += 1
                results['failed_files'].append((str(file_path), str(e)))
                continue

            if report.skipped:
                results['skipped'] += 1
                continue

            results['converted'] += 1
            results['converted_files'].append(str(report.output_path))
            results['reports'].append(report)

        logger.info("🎯 Conversion Summary:")
        logger.info(f"  📊 Total files: {results['total_files']}")
        logger.info(f"  ✅ Converted: {results['converted']}")
        logger.info(f"  ⏭️  Skipped (already converted): {results['skipped']}")
        logger.info(f"  ❌ Failed: {results['failed']}")

        return results

    @staticmethod
    def _empty_results() -> Dict[str, Any]:
        return {
            'total_files': 0,
            'converted': 0,
            'skipped': 0,
            'failed': 0,
            'converted_files': [],
            'failed_files': [],
            'reports': []
        }
