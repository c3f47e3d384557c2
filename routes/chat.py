"""
Chat endpoint as a Flask Blueprint.
"""

from flask import Blueprint, current_app, jsonify, request

from chat_logger import get_logger
from errors import InvalidRequest
from models import ChatReply

logger = get_logger("lpj_chat")

chat_bp = Blueprint("chat", __name__)

# error kind → HTTP status
ERROR_STATUS = {
    "catalog_unavailable": 503,
    "model_failure": 502,
}


def _reply_body(reply: ChatReply) -> dict:
    return {
        "success": reply.success,
        "response": reply.response,
        "products": reply.products,
        "category": reply.category.value if reply.category else None,
        "metadata": {**reply.metadata, "error": reply.error} if reply.error else reply.metadata,
    }


@chat_bp.route("/chat", methods=["POST"])
def chat():
    """
    Main chat endpoint.

    Request:
        POST /chat
        {"message": "Welche Farben hat die Mountain Plaid?"}

    Response:
        {
            "success": true,
            "response": "<div ...>...</div>",
            "products": [...],          # up to 5
            "category": "colors",
            "metadata": {...}
        }
    """
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        logger.warning("POST /chat | Invalid JSON body")
        return jsonify({"error": "Nachricht ist erforderlich"}), 400

    service = current_app.config["CHAT_SERVICE"]
    try:
        reply = service.handle(body.get("message"))
    except InvalidRequest as e:
        logger.warning("POST /chat | Empty message")
        return jsonify({"error": str(e)}), 400
    except Exception:
        logger.exception("POST /chat | Unexpected error")
        return jsonify({"error": "Interner Server Fehler"}), 500

    return jsonify(_reply_body(reply)), ERROR_STATUS.get(reply.error, 200)


@chat_bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint with catalog cache status."""
    service = current_app.config["CHAT_SERVICE"]
    return jsonify({
        "status": "ok",
        "cache": service.cache.status(),
    })
