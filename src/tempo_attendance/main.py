from __future__ import annotations

import atexit
import importlib
import logging

from dotenv import load_dotenv
from flask import Flask

from .auth.controller import register as register_auth
from .common.web import register_error_handlers
from .config import get_settings_module
from .container import Container, build_container
from .core.enums import StorageBackend
from .core.exceptions import PersistenceError
from .database.bootstrap import apply_schema, list_tables
from .database.connection import DBConfig
from .reports.controller import register as register_reports
from .roster.controller import register as register_roster
from .shifts.controller import register as register_shifts

logger = logging.getLogger(__name__)


def create_app(container: Container | None = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    backend = StorageBackend(str(getattr(settings, "STORAGE_BACKEND", "local")).lower())
    db_config = dict(getattr(settings, "DB_CONFIG", {}))
    logger.info("settings=%s storage=%s", settings_module, backend.value)

    if container is None:
        if backend == StorageBackend.MYSQL and bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info(
                "schema ready on %s (tables=%d)",
                DBConfig.from_dict(db_config).describe(),
                len(list_tables(db_config)),
            )

        container = build_container(
            backend=backend,
            db_config=db_config,
            local_store_path=getattr(settings, "LOCAL_STORE_PATH", None),
            admin_pin=str(getattr(settings, "ADMIN_PIN", "1234")),
            stale_check_interval=float(getattr(settings, "STALE_CHECK_INTERVAL_SECONDS", 60)),
        )

    try:
        container.roster_service.load()
        container.shift_engine.load_active()
    except PersistenceError:
        logger.exception("Failed to load data; starting with an empty roster")

    if bool(getattr(settings, "START_RECONCILER", False)):
        container.reconciler.start()
        atexit.register(container.reconciler.stop)

    app.extensions["tempo"] = container

    register_error_handlers(app)
    register_auth(app, container)
    register_roster(app, container)
    register_shifts(app, container)
    register_reports(app, container)

    return app
