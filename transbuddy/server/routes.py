from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify, request

from transbuddy.app.logging_setup import log_event
from transbuddy.contracts import TranslationRequest
from transbuddy.nlp.translator.errors import TranslationError, ValidationError

api = Blueprint("api", __name__)


def _parse_payload() -> TranslationRequest:
    payload = request.get_json(silent=True)
    if payload is None:
        payload = request.form.to_dict()
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")

    text = payload.get("text")
    if not text or not isinstance(text, str):
        raise ValidationError("Text is required")
    target = payload.get("targetLang")
    if not target or not isinstance(target, str):
        raise ValidationError("Target language is required")
    source = payload.get("sourceLang") or "auto"
    return TranslationRequest(text=text, source_lang=str(source), target_lang=target)


@api.route("/translate", methods=["POST"])
def translate_text():
    service = current_app.extensions["transbuddy.translation"]
    logger = current_app.extensions.get("transbuddy.logger")
    try:
        req = _parse_payload()
        res = service.translate_request(req)
    except TranslationError as e:
        log_event(
            logger,
            logging.WARNING if isinstance(e, ValidationError) else logging.ERROR,
            "translate_error",
            error_type=type(e).__name__,
            error=str(e),
        )
        return jsonify(success=False, message=str(e) or "An error occurred during translation"), e.status_code

    return jsonify(
        success=True,
        translation=res.translated_text,
        sourceLang=res.source_lang or "auto",
        targetLang=res.target_lang,
    )
