import os
import logging
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv

logger = logging.getLogger(__name__)

CONNECTOR_POLICIES = ("consecutive", "adjacent")


@dataclass(frozen=True)
class Settings:
    connector_policy: str = "consecutive"
    redraw_delay: float = 0.3
    diagram_width: int = 900
    plantuml_server: str = "http://www.plantuml.com/plantuml"
    plantuml_timeout: float = 10.0
    log_level: str = "INFO"


def _number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, using default %r", name, raw, default)
        return default
    if value < 0:
        logger.warning("Negative %s=%r, using default %r", name, raw, default)
        return default
    return value


def load_settings() -> Settings:
    # environment variables from a .env file
    load_dotenv(find_dotenv(usecwd=True))

    policy = os.getenv("JOURNAL_CONNECTOR_POLICY", Settings.connector_policy).strip().lower()
    if policy not in CONNECTOR_POLICIES:
        logger.warning("Unknown JOURNAL_CONNECTOR_POLICY=%r, using %r", policy, Settings.connector_policy)
        policy = Settings.connector_policy

    log_level = os.getenv("LOG_LEVEL", Settings.log_level).strip().upper()
    if not isinstance(logging.getLevelName(log_level), int):
        logger.warning("Unknown LOG_LEVEL=%r, using %r", log_level, Settings.log_level)
        log_level = Settings.log_level

    return Settings(
        connector_policy=policy,
        redraw_delay=_number("JOURNAL_REDRAW_DELAY", Settings.redraw_delay, float),
        diagram_width=_number("JOURNAL_DIAGRAM_WIDTH", Settings.diagram_width, int),
        plantuml_server=os.getenv("PLANTUML_SERVER", Settings.plantuml_server).rstrip("/"),
        plantuml_timeout=_number("PLANTUML_TIMEOUT", Settings.plantuml_timeout, float),
        log_level=log_level,
    )
