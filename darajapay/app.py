import os
import sys
import logging

from flask import Flask

# Local imports
from darajapay.config import Config, DarajaSettings
from darajapay.extensions import cors
from darajapay.mpesa_core import DarajaClient
from darajapay.mpesa_handler import daraja_bp
from darajapay.utils import mask_secret

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"

logger = logging.getLogger("darajapay.app")


# -----------------------
# Logging
# -----------------------
def configure_logging(level="INFO", log_file=None):
    """Attach console (and optional file) handlers to the package logger once."""
    pkg_logger = logging.getLogger("darajapay")
    pkg_logger.setLevel(level)
    if pkg_logger.handlers:
        return pkg_logger

    # Also log to console (for dev/debug)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    pkg_logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(os.path.abspath(log_file))
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        pkg_logger.addHandler(file_handler)
    return pkg_logger


# -----------------------
# App factory
# -----------------------
def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    configure_logging(app.config["LOG_LEVEL"], app.config.get("LOG_FILE"))

    # Permissive by default; set CORS_ORIGINS to narrow it in production
    cors.init_app(
        app,
        resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}},
        send_wildcard=app.config["CORS_ORIGINS"] == "*",
    )

    settings = DarajaSettings.from_config(app.config)
    missing = settings.missing()
    if missing:
        logger.warning("Missing Daraja configuration: %s", ", ".join(missing))
    logger.info(
        "Daraja %s client ready (shortcode=%s, consumer_key=%s)",
        settings.environment, settings.shortcode, mask_secret(settings.consumer_key),
    )
    app.extensions["daraja"] = DarajaClient(settings)

    app.register_blueprint(daraja_bp, url_prefix="/api/daraja")
    return app


def main(app=None):
    if app is None:
        app = create_app()
    port = app.config["PORT"]
    logger.info("Server Running on %s", port)
    app.run(host=app.config["HOST"], port=port)


if __name__ == "__main__":
    main()
