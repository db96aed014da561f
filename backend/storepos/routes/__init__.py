from flask import jsonify


def error_response(exc, status: int):
    """Business error as {"error", "details"} with the given status."""
    return jsonify({"error": str(exc), "details": getattr(exc, "details", {}) or {}}), status
