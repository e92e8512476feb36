"""
Routes package - HTTP endpoints of the contact backend.
"""
from flask import Blueprint

# Misc API endpoints (health)
api = Blueprint("api", __name__)

# Contact endpoint, mounted on both the production and the development path
contact = Blueprint("contact", __name__)

# Route modules are imported after the blueprints exist to avoid circular imports
from . import (
    contact_routes,
    health,
)

__all__ = ["api", "contact"]
