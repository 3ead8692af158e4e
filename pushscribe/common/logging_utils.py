"""Logging utilities for consistent logging across stages."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def setup_logging(log_dir: PathLike = "logs", name: str = "pushscribe") -> None:
    """Setup logging configuration."""
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_path / f"{name}.log", encoding="utf-8"),
            logging.StreamHandler()
        ]
    )


def log_server_message(message: str) -> None:
    """Log server-related messages."""
    logging.info(f"[SERVER] {message}")


def append_log_line(log_file: PathLike, message: str, level: str = "INFO") -> None:
    """Append one "<timestamp> | <LEVEL> | <message>" line to an audit log."""
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    with open(log_path, "a", encoding="utf-8") as f:
        f.write(f"{timestamp} | {level} | {message}\n")


def log_webhook_request(
    webhook_data: Dict[str, Any],
    log_dir: PathLike,
    event: str = "",
    delivery_id: str = "",
) -> None:
    """Append a received webhook to the daily webhook log."""
    try:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        now = datetime.now()
        webhook_file = log_path / f"webhook_{now.strftime('%Y-%m-%d')}.log"

        with open(webhook_file, "a", encoding="utf-8") as f:
            f.write(f"{now.strftime('%Y-%m-%d %H:%M:%S')} | {event} | {delivery_id}\n")
            f.write("-" * 40 + "\n")
            f.write(json.dumps(webhook_data, indent=2, ensure_ascii=False) + "\n")
            f.write("=" * 40 + "\n\n")

        logger.debug(f"Webhook logged to: {webhook_file}")

    except Exception as e:
        logging.error(f"Failed to log webhook request: {e}")


def log_error(error_message: str, error_data: str = "", log_dir: Optional[PathLike] = None) -> None:
    """Log error messages with optional error data."""
    try:
        log_path = Path(log_dir or "logs")
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%dT%H%M%S")
        error_file = log_path / f"error-{timestamp}.log"

        with open(error_file, "a", encoding="utf-8") as f:
            f.write(f"Error occurred at: {datetime.now().isoformat()}\n")
            f.write(f"Error message: {error_message}\n")
            if error_data:
                f.write(f"Error data:\n{error_data}\n")

        logging.error(f"Error logged to: {error_file}")

    except Exception as e:
        logging.error(f"Failed to log error: {e}")
