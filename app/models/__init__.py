"""
Site Inspection Platform — ORM models.

Every model module imports ``db`` from here so there is exactly one
SQLAlchemy instance, bound to the app in ``create_app``.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
