import logging
import os
from datetime import date


class DailyFileHandler(logging.FileHandler):
    """
    Writes to <base>/<YYYY>/<MM>/saree-store-<YYYY-MM-DD>.log and reopens
    on the first record of a new day.
    """

    def __init__(self, base_log_dir, encoding="utf-8"):
        self.base_log_dir = base_log_dir
        self.day = date.today()
        super().__init__(self.path_for(self.day), encoding=encoding, delay=True)

    def path_for(self, day):
        folder = os.path.join(self.base_log_dir, f"{day:%Y}", f"{day:%m}")
        os.makedirs(folder, exist_ok=True)
        return os.path.join(folder, f"saree-store-{day:%Y-%m-%d}.log")

    def emit(self, record):
        today = date.today()
        if today != self.day:
            self.acquire()
            try:
                self.close()
                self.day = today
                self.baseFilename = os.path.abspath(self.path_for(today))
            finally:
                self.release()
        super().emit(record)


def _log_dir():
    return os.environ.get("APP_LOG_DIR") or os.path.abspath(
        os.path.join(os.path.dirname(__file__), "..", "..", "storage", "logs")
    )


def build_logger(name="SareeStore"):
    logger = logging.getLogger(name)
    logger.setLevel(os.environ.get("APP_LOG_LEVEL", "DEBUG").upper())
    if logger.handlers:
        return logger

    formatter = logging.Formatter("%(asctime)s %(levelname)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
    for handler in (logging.StreamHandler(), DailyFileHandler(_log_dir())):
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


Log = build_logger()

__all__ = ["Log"]
