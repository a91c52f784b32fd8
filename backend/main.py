"""
Lineage service entry point.

    python main.py                           # development server on :8099
    gunicorn -w 4 'main:create_app()'        # production
"""
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
from flask_cors import CORS
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config import Config
from database import db, init_db
from errors import LineageError
from api.lineage import lineage_bp

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(LineageError)
    def handle_lineage_error(error: LineageError):
        if error.status_code >= 500:
            logger.error("Lineage request failed: %s", error.message)
        return jsonify({"success": False, "error": error.to_dict()}), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        payload = {"type": error.name.lower().replace(" ", "_"), "message": error.description}
        return jsonify({"success": False, "error": payload}), error.code


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    _configure_logging(app.config.get("LOG_LEVEL", "INFO"))
    db.init_app(app)
    CORS(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"], "supports_credentials": True}},
         supports_credentials=True)
    app.register_blueprint(lineage_bp, url_prefix='/api')
    _register_error_handlers(app)

    @app.route("/api/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok"})

    init_db(app)
    return app


if __name__ == "__main__":
    app = create_app()
    logger.info("Starting lineage service on http://localhost:8099")
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "8099")), debug=False, use_reloader=False)
