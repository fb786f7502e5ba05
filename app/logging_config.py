import logging
import sys
import os
from pathlib import Path
from datetime import datetime

from app.config import settings


def setup_logging():
    """
    Configures console and file logging for the detector.
    The console shows one line per verdict at LOG_LEVEL; the dated file under logs/
    keeps DEBUG detail (bundle sizes, skipped bundle fetches, individual signals).
    In production or when the log directory is not writable, only the console is used.
    """
    # Render, Heroku and similar hosts set one of these
    is_production = os.getenv('RENDER') or os.getenv('DYNO') or os.getenv('PORT')
    console_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    # File lines carry the function and line for tracing a single detection
    detailed_formatter = logging.Formatter(
        fmt='%(asctime)s | %(levelname)-8s | %(name)-20s | %(funcName)-20s | Line:%(lineno)-4d | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_formatter = logging.Formatter(
        fmt='%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s',
        datefmt='%H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(console_formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Uvicorn reloads re-run this; avoid duplicate handlers
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)

    if not is_production:
        try:
            log_dir = Path("logs")
            log_dir.mkdir(exist_ok=True)
            log_file = log_dir / f"detector_{datetime.now().strftime('%Y%m%d')}.log"

            # DEBUG level: bundle fetches and per-signal detail end up here
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(detailed_formatter)

            root_logger.addHandler(file_handler)
            logging.info(f"📁 Log file enabled: {log_file}")
        except (PermissionError, OSError) as e:
            # Read-only filesystem, keep going on the console
            logging.warning(f"⚠️ File logging disabled (permission issue): {e}")
    else:
        logging.info("📋 Production mode: Console logging only")

    # Every detection makes two outbound requests; keep client chatter out of the log
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logging.info("=" * 80)
    logging.info(f"🚀 Logging initialized for {settings.PROJECT_NAME} v{settings.VERSION} (console level: {settings.LOG_LEVEL.upper()})")
    logging.info("=" * 80)
