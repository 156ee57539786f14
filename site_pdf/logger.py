# === FILE: site_pdf/logger.py ===
"""Логирование SitePDF.

Все модули пишут в один логгер ``SitePDF``: прогресс генерации идёт через
:class:`~site_pdf.reporter.LoggingReporter`, предупреждения об очистке вкладок
и сервере пишут сами модули. CLI перенастраивает логгер из ``--log-level``,
``--log-file`` и ``--log-format``::

    from site_pdf.logger import logger
    logger.info("PDF generation started")

Строки прогресса содержат ``▶``/``✖``, поэтому файл логов открывается в UTF-8.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, List, Optional, Union

LOGGER_NAME: Final[str] = "SitePDF"
DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# ротация файла логов: 5 MiB x 3 архива
_MAX_BYTES: Final[int] = 5 * 1024 * 1024
_BACKUPS: Final[int] = 3

Level = Union[int, str]


def _handlers(log_format: str, log_file: Optional[Union[str, Path]]) -> List[logging.Handler]:
    formatter = logging.Formatter(log_format)
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(path, maxBytes=_MAX_BYTES, backupCount=_BACKUPS, encoding="utf-8")
        )
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure(
    *,
    level: Level = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    log_format: str = DEFAULT_FORMAT,
    replace_handlers: bool = True,
) -> logging.Logger:
    """Настраивает логгер ``SitePDF`` и возвращает его.

    level: уровень (``"DEBUG"`` показывает старт каждой попытки и повторы).
    log_file: файл с ротацией в дополнение к stdout.
    replace_handlers: False добавляет обработчики к уже существующим.
    """
    lg = logging.getLogger(LOGGER_NAME)
    lg.setLevel(level.upper() if isinstance(level, str) else level)

    if replace_handlers:
        for old in list(lg.handlers):
            lg.removeHandler(old)
            old.close()
    for handler in _handlers(log_format, log_file):
        lg.addHandler(handler)

    # записи не дублируются корневым логгером хост-приложения
    lg.propagate = False
    return lg


def init_logging(level: Level = "INFO", log_file: Optional[Union[str, Path]] = None) -> logging.Logger:
    return configure(level=level, log_file=log_file)


logger: logging.Logger = init_logging()

__all__ = ["logger", "configure", "init_logging", "LOGGER_NAME", "DEFAULT_FORMAT"]
