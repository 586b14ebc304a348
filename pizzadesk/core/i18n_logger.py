"""
Internationalized logging system with proper configuration
Logs are stored with translation keys, then rendered in the configured language.
The same catalog renders the human-readable notification messages.
"""
import logging
import json
import sys
from enum import StrEnum
from typing import Dict, Optional
from pathlib import Path
from config import LANG, LOGLEVEL


LOCALES_DIR = Path(__file__).resolve().parent.parent / "locales"


class LogLevel(StrEnum):
    """Standard logging levels"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


_translations_cache: Dict[str, Dict[str, str]] = {}


def load_translations(language: str, translations_dir: Path = LOCALES_DIR) -> Dict[str, str]:
    """Load the catalog for a language (cached), falling back to English"""
    cache_key = f"{translations_dir}:{language}"
    if cache_key in _translations_cache:
        return _translations_cache[cache_key]

    translation_file = translations_dir / f"{language}.json"
    if not translation_file.exists():
        translation_file = translations_dir / "en.json"
        if not translation_file.exists():
            return {}

    with open(translation_file, 'r', encoding='utf-8') as f:
        translations = json.load(f)
    _translations_cache[cache_key] = translations
    return translations


def translate(key: str, language: str = LANG, **kwargs) -> str:
    """
    Render a catalog entry with its parameters.

    Unknown keys render as the key itself so a missing entry never breaks a caller.
    """
    template = load_translations(language).get(key, key)
    try:
        return template.format_map(kwargs)
    except (KeyError, ValueError):
        return template


class I18nLogger:
    """
    Logger that stores structured logs with translation keys.

    Example:
        logger.info("order.created", order_number=12, customer="Ana")

        In English: "Order #12 created for Ana"
        In Portuguese: "Pedido #12 criado para Ana"
    """

    _configured_loggers: set = set()  # Track configured loggers

    def __init__(self, name: str, translations_dir: Optional[str] = None):
        self.logger = logging.getLogger(name)
        self.translations_dir = Path(translations_dir) if translations_dir else LOCALES_DIR

        # Configure logger only once per name
        if name not in I18nLogger._configured_loggers:
            self._configure_logger()
            I18nLogger._configured_loggers.add(name)

    def _configure_logger(self):
        """Configure logger with a colored console handler"""
        self.logger.handlers.clear()

        log_level = getattr(logging, LOGLEVEL, logging.INFO)
        self.logger.setLevel(log_level)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(ColoredFormatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        self.logger.addHandler(console_handler)

        # Keep propagation so pytest's caplog still sees the records
        self.logger.propagate = True

    def _format_message(self, key: str, language: str = LANG, **kwargs) -> str:
        """Translate a key and substitute its parameters"""
        template = load_translations(language, self.translations_dir).get(key, key)
        try:
            return template.format_map(kwargs)
        except KeyError as e:
            return f"{template} (missing params: {e})"
        except ValueError:
            return key

    def _log_structured(self, level: LogLevel, key: str, language: str = LANG, **kwargs):
        """
        Log a translated message with the key and parameters attached as extra fields.
        """
        message = self._format_message(key, language, **kwargs)
        extra = {
            'translation_key': key,
            'params': kwargs,
            'language': language
        }
        log_method = getattr(self.logger, level.value.lower())
        log_method(message, extra=extra)

    def debug(self, key: str, language: str = LANG, **kwargs):
        """Log debug message with translation"""
        self._log_structured(LogLevel.DEBUG, key, language, **kwargs)

    def info(self, key: str, language: str = LANG, **kwargs):
        """Log info message with translation"""
        self._log_structured(LogLevel.INFO, key, language, **kwargs)

    def warning(self, key: str, language: str = LANG, **kwargs):
        """Log warning message with translation"""
        self._log_structured(LogLevel.WARNING, key, language, **kwargs)

    def error(self, key: str, language: str = LANG, **kwargs):
        """Log error message with translation"""
        self._log_structured(LogLevel.ERROR, key, language, **kwargs)

    def critical(self, key: str, language: str = LANG, **kwargs):
        """Log critical message with translation"""
        self._log_structured(LogLevel.CRITICAL, key, language, **kwargs)


class ColoredFormatter(logging.Formatter):
    """Formatter that adds colors to log levels for better visibility"""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        # Color a copy so other handlers keep the plain level name
        record = logging.makeLogRecord(record.__dict__)
        if record.levelname in self.COLORS:
            record.levelname = f"{self.COLORS[record.levelname]}{record.levelname}{self.RESET}"
        return super().format(record)


def get_i18n_logger(name: str, translations_dir: Optional[str] = None) -> I18nLogger:
    """
    Get or create an i18n logger instance

    Args:
        name: Logger name (usually __name__)
        translations_dir: Optional custom path to translations directory
    """
    return I18nLogger(name, translations_dir)
