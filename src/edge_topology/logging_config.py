
import logging
import time
from pathlib import Path

from edge_topology import config

# Per-source detail lines are logged only while this is set (see setup_logging)
VERBOSE = config.VERBOSE

LOG_FORMAT = '[%(levelname)-7s] %(asctime)s - %(name)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Chatty third-party loggers kept at WARNING
QUIET_LOGGERS = ("numexpr",)


def log_file_path(profile: str = None, log_dir: Path = None) -> Path:
    """<log_dir>/<profile>_<timestamp>.log, the directory created if needed."""
    log_dir = Path(log_dir) if log_dir else config.LOGS_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    timestamp = time.strftime("%Y%m%d_%H%M%S")
    return log_dir / f"{profile or 'edge_topology'}_{timestamp}.log"


def setup_logging(profile: str = None, level: str = config.LOG_LEVEL, verbose: bool = True,
                  log_dir: Path = None) -> logging.Logger:
    """
    Route every module logger to a per-run file and the console.

    The root logger gets the handlers, so ``edge_topology.*`` loggers need no
    setup of their own. A second call only updates the level and the verbose
    flag.

    Args:
        profile: Config profile, used as the log file prefix
        level: DEBUG, INFO, WARNING or ERROR
        verbose: If False, per-source detail lines of multi-source runs are dropped
        log_dir: Directory for the log file (defaults to <project>/logs)
    """
    global VERBOSE
    VERBOSE = verbose

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if root_logger.hasHandlers():
        return logging.getLogger(profile)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in (logging.FileHandler(log_file_path(profile, log_dir)), logging.StreamHandler()):
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logging.getLogger(profile)


def log_section(logger: logging.Logger, title: str, width: int = 60):
    """Log a section header with separators."""
    separator = "=" * width
    logger.info(separator)
    logger.info(title)
    logger.info(separator)


def log_dict(logger: logging.Logger, data: dict, title: str = None):
    """Log dictionary as aligned key-value pairs."""
    if title:
        logger.info(f"--- {title} ---")
    if not data:
        return
    width = max(len(str(k)) for k in data)
    for key, value in data.items():
        logger.info(f"{str(key).ljust(width)} : {value}")


def log_frame(logger: logging.Logger, df, title: str, max_rows: int = 20):
    """Log the first rows of a result DataFrame under a title line."""
    if df.empty:
        logger.info(f"{title}: no rows")
        return
    logger.info(f"{title}: {len(df):,} rows, first {min(len(df), max_rows)}:\n"
                f"{df.head(max_rows).to_string()}")
