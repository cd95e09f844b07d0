from __future__ import annotations

import importlib
import logging
import time
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, g, request
from werkzeug.exceptions import HTTPException

from config import get_settings_module

from .common.responses import error, success
from .container import LOGGER_NAME, Container, build_container
from .database.bootstrap import apply_schema, ensure_super_admin, list_tables
from .users.controller import INTERNAL_ERROR
from .users.controller import register as register_users

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(debug: bool) -> logging.Logger:
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO, format=LOG_FORMAT)
    return logging.getLogger(LOGGER_NAME)


def _register_http_hooks(app: Flask, log: logging.Logger, allow_origin: str) -> None:
    http_log = log.getChild("http")

    @app.before_request
    def _start_timer():
        g.request_started = time.perf_counter()
        if request.method == "OPTIONS":
            # CORS preflight; headers are added in _finish_request.
            return app.response_class(status=200)
        return None

    @app.after_request
    def _finish_request(response):
        response.headers["Access-Control-Allow-Origin"] = allow_origin
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, PATCH, DELETE, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization"

        started = g.pop("request_started", None)
        duration_ms = round((time.perf_counter() - started) * 1000, 2) if started is not None else 0.0
        http_log.info(
            "%s %s %s %sms remote=%s",
            request.method,
            request.path,
            response.status_code,
            duration_ms,
            request.remote_addr,
        )
        return response

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        return error(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def _unhandled(e: Exception):
        log.error("unhandled error on %s %s", request.method, request.path, exc_info=e)
        return error(INTERNAL_ERROR, 500)

    @app.route("/api/v1/health", methods=["GET"], endpoint="health")
    def health():
        return success({"status": "ok"})


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    db_config = dict(getattr(settings, "DB_CONFIG"))
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    log = configure_logging(app.config["DEBUG"])
    log.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if container is None:
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            log.info("schema ready (tables=%d)", len(list_tables(db_config)))

        container = build_container(db_config=db_config, logger=log)

        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_super_admin(
                container.user_service,
                email=getattr(settings, "SUPER_ADMIN_EMAIL"),
                password=getattr(settings, "SUPER_ADMIN_PASSWORD"),
            )

    _register_http_hooks(app, log, str(getattr(settings, "CORS_ALLOW_ORIGIN", "*")))
    register_users(app, container)

    return app


def main() -> None:
    app = create_app()
    settings = importlib.import_module(get_settings_module())
    app.run(
        host=str(getattr(settings, "HOST", "127.0.0.1")),
        port=int(getattr(settings, "PORT", 8080)),
        debug=bool(getattr(settings, "DEBUG", False)),
        threaded=True,
    )


if __name__ == "__main__":
    main()
