import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOGGER_NAME = 'dew_point_fan'


def setup_logging(log_dir: Optional[Path] = None, level: str = 'INFO') -> logging.Logger:
    """Setup logging with file rotation and console output"""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Prevent adding multiple handlers if function is called multiple times
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        # File handler with rotation (2MB max, keep 30 files)
        file_handler = RotatingFileHandler(
            log_dir / 'dpf.log',
            maxBytes=2*1024*1024,  # 2MB
            backupCount=30
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    return logger
