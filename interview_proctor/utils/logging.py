"""
Logging Utility for the Interview Proctor Service

Colored terminal output: one line per HTTP request, a startup banner,
and a formatter shared by every interview_proctor.* logger.
"""
import logging
import sys
from datetime import datetime
from typing import Optional


# ============================================================================
# ANSI Colors for Terminal
# ============================================================================

class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"

    BG_RED = "\033[41m"


def paint(text: str, *codes: str) -> str:
    return f"{''.join(codes)}{text}{Colors.RESET}"


# ============================================================================
# Logger Configuration
# ============================================================================

class ColoredFormatter(logging.Formatter):
    """`HH:MM:SS.mmm LEVEL [logger] message` with the level colored."""

    LEVEL_COLORS = {
        logging.DEBUG: (Colors.DIM, Colors.WHITE),
        logging.INFO: (Colors.GREEN,),
        logging.WARNING: (Colors.YELLOW,),
        logging.ERROR: (Colors.RED,),
        logging.CRITICAL: (Colors.BG_RED, Colors.WHITE),
    }

    def format(self, record: logging.LogRecord) -> str:
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]
        level = paint(f"{record.levelname:8}", *self.LEVEL_COLORS.get(record.levelno, (Colors.WHITE,)))

        line = f"{paint(clock, Colors.DIM)} {level} [{paint(record.name, Colors.CYAN)}] {record.getMessage()}"

        # Tracebacks from logger.exception()
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"

        return line


def setup_logger(name: str = "interview_proctor", level: str = "INFO") -> logging.Logger:
    """Attach a single colored stdout handler to the package logger."""
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColoredFormatter())
    logger.addHandler(handler)
    logger.propagate = False

    return logger


http_logger = logging.getLogger("interview_proctor.http")


# ============================================================================
# Logging Functions
# ============================================================================

def log_request(method: str, path: str, status: int, duration_ms: int):
    """One line per finished request; 4xx/5xx in red."""
    status_text = paint(str(status), Colors.GREEN if status < 400 else Colors.RED)
    http_logger.info(f"{method:6} {path} -> {status_text} ({duration_ms}ms)")


def log_error(error_type: str, message: str, session_id: Optional[str] = None):
    suffix = f" [session {session_id}]" if session_id else ""
    http_logger.error(f"{paint(error_type, Colors.BOLD)}: {message}{suffix}")


def log_startup(service_name: str, port: int, debug: bool = False):
    """Print the startup banner."""
    rule = paint("=" * 60, Colors.BOLD, Colors.GREEN)
    print(f"\n{rule}")
    print(paint(f"  {service_name} STARTED", Colors.BOLD, Colors.GREEN))
    print(rule)
    print(f"  API:  {paint(f'http://localhost:{port}/api', Colors.CYAN)}")
    if debug:
        print(f"  Docs: {paint(f'http://localhost:{port}/docs', Colors.CYAN)}")
    print()
