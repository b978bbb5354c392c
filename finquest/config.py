import logging
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent

SEED_PATH = os.getenv("FINQUEST_SEED_PATH", str(BASE_DIR / "data" / "seed.json"))
DEFAULT_CURRENCY = os.getenv("FINQUEST_CURRENCY", "USD")
LOG_LEVEL = os.getenv("FINQUEST_LOG_LEVEL", "INFO")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
