import logging
import os
import sys
from pathlib import Path

FILE_FORMAT = '[%(asctime)s]\t %(levelname)s - %(message)s'
CONSOLE_FORMAT = '%(levelname)s : %(message)s'

logger = logging.getLogger("gwsm")

def init_logging(log_file: Path|str|None = None, level: int = logging.INFO,
                 console: bool = False) -> logging.Logger:
    """
    Attach handlers to the package logger, every module logs below it.
    Typically called with the logFile of the active config.
    Calling it again does not add duplicate handlers.
    """
    logger.setLevel(level)
    if log_file is not None:
        path = str(Path(log_file).expanduser())
        if not any(isinstance(h, logging.FileHandler) and h.baseFilename == os.path.abspath(path)
                   for h in logger.handlers):
            file_handler = logging.FileHandler(path)
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
            file_handler.setLevel(logging.DEBUG)
            logger.addHandler(file_handler)
    if console and not any(type(h) is logging.StreamHandler for h in logger.handlers):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        console_handler.setLevel(logging.DEBUG)
        logger.addHandler(console_handler)
    return logger

def get_log_paths() -> list[str]:
    return [h.baseFilename for h in logger.handlers if isinstance(h, logging.FileHandler)]
