import os
from pathlib import Path
from typing import Union

from loguru import logger
from rich.console import Console

__all__ = [
    "console",
    "logger",
    "configure_logging",
    "human_size",
    "lossy_text",
]

console = Console()

# Remove Loguru's default stderr sink; file sinks are added by configure_logging
logger.remove()

log_format = "<green>{time:YYYY-MM-DD HH:mm:ss.SSS zz}</green> | <level>{level: <8}</level> | <yellow>Line {line: >4} ({file}):</yellow> <b>{message}</b>"


def configure_logging(log_dir: Union[str, Path] = ".explorer") -> Path:
    """Attach the debug and info file sinks under ``log_dir``.

    Args:
        log_dir (str | Path): Directory receiving ``debug.log`` and ``info.log``

    Returns:
        Path: The resolved log directory
    """
    directory = Path(os.path.expanduser(str(log_dir)))
    directory.mkdir(parents=True, exist_ok=True)

    logger.add(
        directory / "debug.log",
        level="DEBUG",
        format=log_format,
        colorize=False,
        backtrace=True,
        diagnose=True,
        enqueue=True,
    )
    logger.add(
        directory / "info.log",
        level="INFO",
        format=log_format,
        colorize=False,
        backtrace=True,
        diagnose=True,
        enqueue=True,
    )
    return directory


def human_size(size: int) -> str:
    """Format a byte count for display, e.g. 1536 -> '1.5 KB'."""
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{int(value)} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


def lossy_text(value: str) -> str:
    """Replace surrogates left by undecodable filename bytes with U+FFFD."""
    try:
        raw = value.encode("utf-8", "surrogateescape")
    except UnicodeEncodeError:
        raw = value.encode("utf-8", "surrogatepass")
    return raw.decode("utf-8", "replace")
