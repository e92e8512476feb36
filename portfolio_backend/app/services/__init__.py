"""
Services package - contact pipeline business logic.

Each module is independent of blueprints so it can be exercised directly
from tests and from the CLI.
"""

__all__ = [
    "dispatch",
    "email_templates",
    "mail",
    "validate",
]
