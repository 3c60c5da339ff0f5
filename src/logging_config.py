"""Logging configuration for feedkeep."""
import logging
import logging.handlers
from pathlib import Path
from datetime import datetime, timedelta


def setup_logging(log_dir: Path | None = None, retention_days: int = 30, verbose: bool = False):
    """Configure console logging, plus a daily log file when log_dir is given.

    Args:
        log_dir: Directory for log files (created if missing), or None for console only
        retention_days: How many days of logs to keep
        verbose: If True, set console to DEBUG level
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Remove existing handlers (avoid duplicates)
    root_logger.handlers.clear()

    # Console handler - WARNING level (or DEBUG if verbose), on stderr so
    # command output stays clean
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_formatter = logging.Formatter('[%(levelname)s] %(message)s')
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    if log_dir is None:
        return root_logger

    log_dir.mkdir(parents=True, exist_ok=True)
    cleanup_old_logs(log_dir, retention_days)

    # File handler - daily rotation, DEBUG level
    log_file = log_dir / f"{datetime.now().strftime('%Y-%m-%d')}.log"
    file_handler = logging.handlers.TimedRotatingFileHandler(
        filename=log_file,
        when='midnight',
        interval=1,
        backupCount=retention_days,
        encoding='utf-8',
    )
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    file_handler.setFormatter(file_formatter)
    root_logger.addHandler(file_handler)

    return root_logger


def cleanup_old_logs(log_dir: Path, retention_days: int):
    """Delete log files older than retention_days."""
    if not log_dir.exists():
        return

    cutoff_date = datetime.now() - timedelta(days=retention_days)

    for log_file in log_dir.glob('*.log'):
        try:
            # Parse YYYY-MM-DD.log format
            file_date = datetime.strptime(log_file.stem, '%Y-%m-%d')

            if file_date < cutoff_date:
                log_file.unlink()
                logging.debug(f"Deleted old log file: {log_file.name}")
        except (ValueError, OSError):
            # Not one of ours, or already gone
            continue
