"""
Logging for the Timesheet Analytics Dashboard.

app.py calls setup_logging() once per script run. Every other module just
does `logger = get_logger(__name__)`; row-level detail is logged at DEBUG.
"""

import logging
import os
import sys
from pathlib import Path

LOG_FILE_NAME = "dashboard.log"

FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
FILE_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
CONSOLE_FORMAT = '%(levelname)s - %(message)s'


def _console_handler(log_level):
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    return handler


def _file_handler(log_file, log_level):
    # mode='w': truncated when the handler is created, once per process
    handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATE_FORMAT))
    return handler


def _route_streamlit_loggers(file_handler):
    """Send Streamlit's internal loggers to the dashboard log file"""
    import streamlit.logger  # noqa: F401  registers the streamlit.* loggers

    for name in list(logging.root.manager.loggerDict):
        if not name.startswith('streamlit'):
            continue
        st_log = logging.getLogger(name)
        st_log.propagate = True
        for stale in [h for h in st_log.handlers if isinstance(h, logging.FileHandler) and h is not file_handler]:
            st_log.removeHandler(stale)
        if file_handler not in st_log.handlers:
            st_log.addHandler(file_handler)


def _dashboard_file_handler(root, log_file):
    """The root FileHandler already writing log_file, if any"""
    target = os.path.abspath(log_file)
    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == target:
            return handler
    return None


def setup_logging(log_level=logging.INFO, log_dir="logs"):
    """
    Configure the root logger with a console handler and a file handler.

    Streamlit reruns app.py on every interaction, so repeat calls for the
    same log file only update the level; the file is truncated once, when
    its handler is first created. Handlers being replaced are closed.

    Args:
        log_level: level for the root logger and both handlers
        log_dir: directory holding dashboard.log, created if missing

    Returns:
        logging.Logger: the root logger
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    log_file = log_path / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(log_level)

    if _dashboard_file_handler(root, log_file) is not None:
        for handler in root.handlers:
            handler.setLevel(log_level)
        return root

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    file_handler = _file_handler(log_file, log_level)
    root.addHandler(_console_handler(log_level))
    root.addHandler(file_handler)

    root.info(f"Logging initialized. Log file: {log_file}")
    root.debug(f"Log level: {logging.getLevelName(log_level)}")

    try:
        _route_streamlit_loggers(file_handler)
    except ImportError:
        root.warning("streamlit is not importable; its logs will not reach the log file")

    return root


def get_logger(name):
    """Module logger; handlers come from setup_logging()"""
    return logging.getLogger(name)
