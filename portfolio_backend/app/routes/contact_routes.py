"""Contact form endpoint."""
from flask import Response, current_app, jsonify, request

from . import contact
from ..services.dispatch import build_response, handle_contact_request

CORS_HEADERS = {
    "Access-Control-Allow-Credentials": "true",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Accept, Authorization",
}

# Every method is routed here so that anything but POST/OPTIONS gets the JSON 405 envelope
ACCEPTED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@contact.after_request
def add_cors_headers(response):
    """Permissive CORS headers on every contact response, whatever the outcome."""
    for header, value in CORS_HEADERS.items():
        response.headers[header] = value
    return response


@contact.route("/send-email", methods=ACCEPTED_METHODS)
def send_email():
    """Validates a contact submission and forwards it by email."""
    settings = current_app.extensions["contact_settings"]
    transport = current_app.extensions["contact_transport"]

    payload = request.get_json(silent=True) if request.method == "POST" else None
    result = handle_contact_request(request.method, payload, transport, settings)
    body, status_code = build_response(result, settings)
    if body is None:
        return Response(status=status_code)
    return jsonify(body), status_code
