from __future__ import annotations

import logging
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from transbuddy.app.config import ServerConfig, load_server_config
from transbuddy.nlp.translator.base import Translator
from transbuddy.nlp.translator.factory import get_translator
from transbuddy.nlp.translator.service import TranslationService
from transbuddy.server.routes import api


def create_app(
    config: Optional[ServerConfig] = None,
    *,
    translator: Optional[Translator] = None,
    logger: Optional[logging.Logger] = None,
) -> Flask:
    """
    Build the HTTP API. The provider is resolved once here, so an unknown
    TRANSLATION_SERVICE fails at startup with UnsupportedConfigurationError.
    """
    config = config or load_server_config()
    translator = translator or get_translator(config.provider)

    app = Flask(__name__)
    app.config["TRANSBUDDY"] = config
    app.extensions["transbuddy.translation"] = TranslationService(translator, logger=logger)
    app.extensions["transbuddy.logger"] = logger

    CORS(app, resources={r"/api/*": {"origins": config.cors_origin}})
    app.register_blueprint(api, url_prefix="/api")

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        return jsonify(success=False, message=e.description or e.name), e.code

    @app.errorhandler(Exception)
    def _unexpected(e: Exception):
        if logger is not None:
            logger.exception("request_crash")
        return jsonify(success=False, message=str(e) or "An error occurred during translation"), 500

    return app
