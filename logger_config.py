import logging
import logging.handlers
import os
from datetime import datetime


def setup_logger(name="FlowCover", log_dir="log"):
    """
    Shared logger: rotating 200MB log files plus console output,
    records time, process and thread.
    """
    if not os.path.exists(log_dir):
        os.makedirs(log_dir)

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    # avoid duplicated handlers on re-import
    if logger.handlers:
        return logger

    now_str = datetime.now().strftime("%Y%m%d")
    log_file = os.path.join(log_dir, f"{name}_{now_str}.log")
    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=200 * 1024 * 1024,  # 200MB
        backupCount=10,
        encoding='utf-8'
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)

    formatter = logging.Formatter(
        '%(asctime)s - [%(process)d][%(thread)d] - %(levelname)s:%(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    file_handler.setFormatter(formatter)
    console_handler.setFormatter(formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger


# global logger instance
logger = setup_logger(log_dir=os.environ.get("FLOWCOVER_LOG_DIR", "log"))
