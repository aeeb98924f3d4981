from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .billing.controller import register as register_bills
from .container import Container, build_container
from .core.constants import CURRENCY_LABEL, DEFAULT_API_BASE_URL, DEFAULT_API_TIMEOUT
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables
from .reports.controller import register as register_reports
from .structures.controller import register as register_structures

logger = logging.getLogger("fee_billing")

DATABASE_DIR = Path(__file__).resolve().parents[2] / "database"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        gateway = getattr(settings, "GATEWAY", "mysql")
        db_config = getattr(settings, "DB_CONFIG", None)
        logger.info("settings=%s gateway=%s", settings_module, gateway)

        if gateway == "mysql":
            if getattr(settings, "AUTO_INIT_DB", False):
                apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
                logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
            if getattr(settings, "AUTO_SEED_DB", False):
                apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
                logger.info("demo seed ready")

        container = build_container(
            db_config=db_config,
            gateway=gateway,
            api_base_url=getattr(settings, "API_BASE_URL", DEFAULT_API_BASE_URL),
            api_token=getattr(settings, "API_TOKEN", None),
            api_timeout=float(getattr(settings, "API_TIMEOUT", DEFAULT_API_TIMEOUT)),
            currency_label=getattr(settings, "CURRENCY_LABEL", CURRENCY_LABEL),
        )

    register_structures(app, container)
    register_bills(app, container)
    register_reports(app, container)

    return app
