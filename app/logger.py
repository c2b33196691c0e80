'''
Module de configuration pour le logger centralisé de l'application.

Ce module utilise Loguru pour fournir un logger pré-configuré avec des sorties
vers la console (avec couleurs) et des fichiers rotatifs.
'''

import sys
import os
from loguru import logger

from app.config import settings

# ==============================================================================
# Configuration de Loguru
# ==============================================================================

# 1. Supprimer le handler par défaut pour éviter les doublons
logger.remove()

# 2. Définir les formats pour les logs
LOG_FORMAT_CONSOLE = (
    "<white>{time:YYYY-MM-DD HH:mm:ss.SSS}</white> | "
    "<level>{level: <8}</level> | "
    "<light-black>{name}:{function}:{line}</light-black> - "
    "<level><b>{message}</b></level>"
)
LOG_FORMAT_FILE = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
    "{level: <8} | "
    "{name}:{function}:{line} - "
    "{message}"
)

# 3. Handler console (stderr)
logger.add(
    sys.stderr,
    level=settings.LOG_LEVEL,
    format=LOG_FORMAT_CONSOLE,
    colorize=True,
    backtrace=True,
    diagnose=False
)


def _add_file_handlers(log_dir: str) -> None:
    """Ajoute les fichiers de log : rotation journalière, 30 jours, compression."""
    if not os.path.exists(log_dir):
        os.makedirs(log_dir)

    common = {
        "format": LOG_FORMAT_FILE,
        "rotation": "00:00",
        "retention": "30 days",
        "compression": "zip",
        "encoding": "utf-8",
    }

    # DEBUG uniquement
    logger.add(
        os.path.join(log_dir, "debug.log"),
        level="DEBUG",
        filter=lambda record: record["level"].name == "DEBUG",
        **common
    )

    # INFO et WARNING
    logger.add(
        os.path.join(log_dir, "info.log"),
        level="INFO",
        filter=lambda record: record["level"].name in ("INFO", "WARNING"),
        **common
    )

    # ERROR et plus, avec la trace complète
    logger.add(
        os.path.join(log_dir, "error.log"),
        level="ERROR",
        backtrace=True,
        diagnose=False,
        **common
    )


# 4. Fichiers de log (désactivables via LOG_TO_FILE)
if settings.LOG_TO_FILE:
    _add_file_handlers(settings.LOG_DIR)

# Usage :
# from app.logger import logger
# logger.info("Recherche q={q}", q=term)
