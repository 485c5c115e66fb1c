import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from datetime import datetime
from typing import Any, Optional

# Logs directory
LOG_DIR = os.getenv("LOG_DIR", "logs")


def setup_logger(name: str = "agent", log_dir: str = LOG_DIR) -> logging.Logger:
    """
    Setup a centralized logger with console and file handlers.

    Format: [Timestamp] [Level] [Module] Message
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    # Prevent duplicate handlers if called multiple times
    if logger.handlers:
        return logger

    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, f"{name}_{datetime.now().strftime('%Y%m%d')}.log")

    # Formatter
    formatter = logging.Formatter(
        '[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # 1. File Handler (Rotating)
    # Max size 10MB, keep 5 backup files
    file_handler = RotatingFileHandler(
        log_file, maxBytes=10*1024*1024, backupCount=5, encoding='utf-8'
    )
    file_handler.setFormatter(formatter)
    file_handler.setLevel(logging.DEBUG) # File captures everything
    logger.addHandler(file_handler)

    # 2. Console Handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.INFO) # Console captures INFO+
    logger.addHandler(console_handler)

    return logger


def _format_value(value: Any) -> str:
    text = str(value)
    if not text or any(ch.isspace() for ch in text) or '"' in text:
        return '"' + text.replace('"', '\\"') + '"'
    return text


def format_fields(**fields: Any) -> str:
    """key=value 한 줄 포맷 (None 값은 생략)"""
    return " ".join(f"{key}={_format_value(value)}" for key, value in fields.items() if value is not None)


def log_api_call(
    method: str,
    endpoint: str,
    success: bool,
    error: Optional[BaseException] = None,
    logger: Optional[logging.Logger] = None,
    **fields: Any
) -> None:
    """API 호출 결과를 구조화된 key=value 라인으로 기록"""
    logger = logger or logging.getLogger("agent")
    line = format_fields(
        method=method,
        endpoint=endpoint,
        success=str(success).lower(),
        error=f"{type(error).__name__}: {error}" if error is not None else None,
        **fields
    )
    if success:
        logger.debug(f"[API] {line}")
    else:
        logger.warning(f"[API] {line}")
