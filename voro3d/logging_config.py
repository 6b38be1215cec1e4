"""
Налаштування логування для простору імен 'voro3d'.
Бібліотечні модулі лише беруть logging.getLogger(__name__); конфігурують скрипти.
"""
import logging
import sys
from typing import Optional


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> None:
    """
    Args:
        level: рівень логування (logging.DEBUG показує статистику кожної клітинки)
        log_file: необов'язковий шлях до файлу логу
    """
    logger = logging.getLogger("voro3d")
    logger.setLevel(level)

    # повторний виклик (перезапуск GUI) не дублює хендлери
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug("Logging initialized.")
