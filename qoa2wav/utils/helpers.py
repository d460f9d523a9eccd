"""Utility functions and helpers"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def format_file_size(num_bytes: int) -> str:
    """Human-readable byte count, e.g. '1.5 MB'."""
    size = float(num_bytes)
    for unit in ('B', 'KB', 'MB'):
        if size < 1024:
            return f"{size:.0f} {unit}" if unit == 'B' else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


def setup_logging(
    channel: str = 'conversion',
    log_file: Optional[str] = None,
    use_date_folders: bool = True,
    logs_dir: Optional[str] = None,
    config: Optional[object] = None,
    minimal: bool = False,
    verbose: bool = False
) -> logging.Logger:
    """
    Configure logging for a functional channel.

    Console output always goes to stderr. A log file is only written when a
    logs directory is given explicitly or through config.output.logs_dir.

    Args:
        channel: Logging channel name used in the log filename
        log_file: Override base filename
        use_date_folders: Enable date-based organization (default: True)
        logs_dir: Override logs directory path
        config: Configuration object to read logs_dir from
        minimal: Console-only logging, ignoring any logs directory
        verbose: Log at DEBUG instead of INFO

    Returns:
        logging.Logger: Configured logger instance

    Creates files like:
        - logs/2025-09-27/2025-09-27_conversion.log
    """
    level = logging.DEBUG if verbose else logging.INFO

    resolved_logs_dir = None if minimal else _resolve_logs_directory(logs_dir, config)
    if resolved_logs_dir is None:
        return _setup_minimal_logging(level)

    log_filename = _generate_log_filename(channel, log_file, use_date_folders)

    if use_date_folders:
        today = datetime.now().strftime('%Y-%m-%d')
        log_dir = Path(resolved_logs_dir) / today
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file_path = log_dir / log_filename
    else:
        log_file_path = Path(resolved_logs_dir) / log_filename

    return _configure_logger(log_file_path, level)


def _setup_minimal_logging(level: int = logging.INFO) -> logging.Logger:
    """Console-only logging."""
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler()],
        force=True
    )
    return logging.getLogger(__name__)


def _resolve_logs_directory(explicit_logs_dir: Optional[str], config: Optional[object]) -> Optional[str]:
    """
    Resolve logs directory with proper priority order.

    Priority:
    1. Explicit logs_dir parameter (highest)
    2. config.output.logs_dir (if config provided)
    3. None, meaning console-only logging
    """
    if explicit_logs_dir:
        return _validate_directory_path(explicit_logs_dir)

    if config is not None and hasattr(config, 'output') and config.output.logs_dir:
        return _validate_directory_path(config.output.logs_dir)

    return None


def _validate_directory_path(path_str: str) -> str:
    """
    Validate and normalize directory path.

    Raises:
        ValueError: If path is invalid or inaccessible
    """
    try:
        path = Path(path_str).expanduser()

        if not path.is_absolute():
            path = Path.cwd() / path

        path.mkdir(parents=True, exist_ok=True)

        # Verify write permissions
        test_file = path / '.write_test'
        test_file.touch()
        test_file.unlink()

        return str(path)

    except OSError as e:
        raise ValueError(f"Invalid logs directory '{path_str}': {e}")


def _generate_log_filename(channel: str, log_file_override: Optional[str], use_date_folders: bool) -> str:
    """
    Generate appropriate log filename based on channel and date settings.
    """
    if log_file_override:
        return log_file_override

    if use_date_folders:
        today = datetime.now().strftime('%Y-%m-%d')
        return f"{today}_{channel}.log"
    return f"qoa2wav_{channel}.log"


def _configure_logger(log_file_path: Path, level: int = logging.INFO) -> logging.Logger:
    """Configure the root logger with file and console handlers."""
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_file_path, encoding='utf-8'),
            logging.StreamHandler()
        ],
        force=True
    )
    return logging.getLogger(__name__)


def get_conversion_logger(config: Optional[object] = None, logs_dir: Optional[str] = None,
                          verbose: bool = False) -> logging.Logger:
    """Get logger for conversion runs."""
    return setup_logging(
        channel='conversion',
        config=config,
        logs_dir=logs_dir,
        use_date_folders=True,
        verbose=verbose
    )
