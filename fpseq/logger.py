# Imports

import os
import sys
import threading
import logging
from dataclasses import dataclass
from typing import Optional

_lock = threading.Lock()
_loggerhandlers = {}

LOG_LEVEL_ENV = "FPSEQ_LOG_LEVEL"
DEFAULT_NAME = "Fpseq"


class LogFormatter(logging.Formatter):
    COLOR_CODES = {
        logging.CRITICAL: "\033[38;5;196m", # bright/bold magenta
        logging.ERROR:    "\033[38;5;9m", # bright/bold red
        logging.WARNING:  "\033[38;5;11m", # bright/bold yellow
        logging.INFO:     "\033[38;5;111m", # white / light gray
        logging.DEBUG:    "\033[1;30m"  # bright/bold black / dark gray
    }

    RESET_CODE = "\033[0m"
    def __init__(self, color, *args, **kwargs):
        super(LogFormatter, self).__init__(*args, **kwargs)
        self.color = color

    def format(self, record, *args, **kwargs):
        if self.color and record.levelno in self.COLOR_CODES:
            record.color_on  = self.COLOR_CODES[record.levelno]
            record.color_off = self.RESET_CODE
        else:
            record.color_on  = ""
            record.color_off = ""
        return super(LogFormatter, self).format(record, *args, **kwargs)


@dataclass
class LoggerConfig:
    name: str = DEFAULT_NAME
    console_log_output: str = "stderr"
    console_log_level: str = "warning"
    console_log_color: bool = False

    @property
    def log_line_template(self):
        return f"%(color_on)s[{self.name}] %(funcName)-5s%(color_off)s: %(message)s"

    @classmethod
    def from_env(cls, name):
        return cls(
            name=name,
            console_log_level=os.getenv(LOG_LEVEL_ENV, "warning"),
            console_log_color=sys.stderr.isatty(),
        )


class FpseqLogger:
    """
    Console logger for the package. Records at or above the configured level are written to
    stderr; the level comes from FPSEQ_LOG_LEVEL when the logger is first requested.
    """

    def __init__(self, config: LoggerConfig):
        self.config = config
        self.logger = self.setup_logging()

    def setup_logging(self):
        logger = logging.getLogger(self.config.name)
        logger.setLevel(logging.DEBUG)
        stream = sys.stderr if self.config.console_log_output == "stderr" else sys.stdout
        console_handler = logging.StreamHandler(stream)
        console_handler.setLevel(self.config.console_log_level.upper())
        console_handler.setFormatter(
            LogFormatter(fmt=self.config.log_line_template, color=self.config.console_log_color)
        )
        if logger.hasHandlers():
            logger.handlers.clear()
        logger.addHandler(console_handler)
        logger.propagate = False
        return logger

    def __call__(self, msg):
        """
        Log msg at info level. Lists are written one item per line, dicts as key: value pairs
        three to a line, anything else (a Sequence included) through str().
        """
        if isinstance(msg, list):
            msg = '\n'.join(str(m) for m in msg)
        elif isinstance(msg, dict):
            pairs = [f' {k}: {v} |' for k, v in msg.items()]
            msg = '\n'.join(''.join(pairs[i:i + 3]) for i in range(0, len(pairs), 3))
        elif not isinstance(msg, str):
            msg = str(msg)
        self.logger.info(msg)

    def info(self, *args, **kwargs):
        return self.logger.info(*args, **kwargs)

    def warn(self, *args, **kwargs):
        return self.logger.warning(*args, **kwargs)

    def err(self, *args, **kwargs):
        return self.logger.error(*args, **kwargs)

    def d(self, *args, **kwargs):
        return self.logger.debug(*args, **kwargs)

    def log(self, *args, **kwargs):
        return self.info(*args, **kwargs)

    def get_logger(self):
        return self.logger


def _configure_library_root_logger(name=DEFAULT_NAME) -> None:
    with _lock:
        if name in _loggerhandlers:
            return
        _loggerhandlers[name] = FpseqLogger(LoggerConfig.from_env(name))


def get_logger(name: Optional[str] = DEFAULT_NAME) -> FpseqLogger:
    if name is None:
        name = DEFAULT_NAME
    _configure_library_root_logger(name)
    return _loggerhandlers[name]
