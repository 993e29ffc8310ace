"""Flask application factory for the optimizer backend."""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import RequestEntityTooLarge

from .config import Config
from .routes import optimize_bp
from .services import OptimizeService

logger = logging.getLogger(__name__)


def create_app(config: Config | None = None) -> Flask:
    """Create and configure the Flask application."""
    if config is None:
        config = Config.load()

    config.ensure_directories()

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = config.max_content_length
    CORS(
        app,
        resources={rf"{config.base_path}/*": {"origins": "*"}},
        expose_headers=["X-Failed-Count", "Content-Disposition"],
    )

    app.config["optimize_service"] = OptimizeService(config)

    app.register_blueprint(optimize_bp, url_prefix=config.base_path or None)

    @app.get(f"{config.base_path}/health")
    def health():
        now = datetime.now(timezone.utc)
        return {
            "status": "ok",
            "timestamp": now.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        }

    @app.errorhandler(RequestEntityTooLarge)
    def too_large(e):
        max_mb = config.max_file_size // (1024 * 1024)
        return jsonify({"error": f"File too large. Maximum size: {max_mb}MB"}), 400

    logger.info(
        "Optimizer backend initialized (base path %r, archive mode %s, temp root %s)",
        config.base_path or "/", config.archive_mode, config.temp_root,
    )
    return app


def main() -> None:
    """Entry point for running the development server."""
    config = Config.load()
    app = create_app(config)
    app.run(host=config.host, port=config.port, debug=False, use_reloader=False)


if __name__ == "__main__":
    main()
