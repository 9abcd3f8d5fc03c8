import logging
import os
import re
from logging.handlers import RotatingFileHandler
from typing import Optional

import colorlog

LOG_COLORS = {
    'DEBUG': 'bold_blue',
    'INFO': 'bold_green',
    'WARNING': 'bold_yellow',
    'ERROR': 'bold_red',
    'CRITICAL': 'bold_purple'
}

# t (token), s (salt) and p (password) query values in signed URLs
_CREDENTIAL_PARAM = re.compile(r"([?&](?:t|s|p)=)[^&\s'\"]+")


class CredentialFilter(logging.Filter):
    """Mask auth query parameters in log messages.

    httpx logs full request URLs at DEBUG, and every Subsonic URL carries a
    token and salt.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = _CREDENTIAL_PARAM.sub(r"\1***", message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setFormatter(
        colorlog.ColoredFormatter("%(log_color)s%(levelname)s:%(name)s:%(message)s", log_colors=LOG_COLORS)
    )
    return handler


def _file_handler(log_file: str) -> logging.Handler:
    max_bytes = int(os.getenv('LOG_FILE_MAX_BYTES', '10485760'))  # 10 MB
    backup_count = int(os.getenv('LOG_FILE_BACKUP_COUNT', '5'))
    handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
    handler.setFormatter(
        logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s - (%(filename)s:%(lineno)d)')
    )
    return handler


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Configure root logging for applications and the CLI.

    Library modules only create named loggers and never call this.

    Args:
        level: Log level name; defaults to SUBSONIC_LOG_LEVEL (INFO), and is
            forced to DEBUG by SUBSONIC_DEBUG=1
        log_file: Rotating log file path; defaults to SUBSONIC_LOG_FILE
    """
    log_level = (level or os.getenv('SUBSONIC_LOG_LEVEL', 'INFO')).upper()
    if os.getenv('SUBSONIC_DEBUG') == '1':
        log_level = 'DEBUG'
    log_file = log_file or os.getenv('SUBSONIC_LOG_FILE')

    root = logging.getLogger()
    root.setLevel(log_level)

    if not root.hasHandlers():
        handlers = [_console_handler()]
        if log_file:
            handlers.append(_file_handler(log_file))
        for handler in handlers:
            handler.addFilter(CredentialFilter())
            root.addHandler(handler)

    # httpx logs every request at INFO
    logging.getLogger('httpx').setLevel(logging.DEBUG if log_level == 'DEBUG' else logging.WARNING)
