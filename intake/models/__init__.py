"""
Intake Completion Service
SQLAlchemy extension instance shared by every model module.

Usage:
    from intake.models import db
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
