"""
Site Inspection Platform
Blueprint registry: auth, projects, reports, admin.
"""

from flask import request

from app.core.exceptions import ValidationError


def json_body() -> dict:
    """Request body as a JSON object; ``{}`` when absent or unparseable."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Corpo da requisição inválido", details={"body": "expected a JSON object"})
    return data
