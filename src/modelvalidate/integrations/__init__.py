"""Adapters giving ORM model classes the validation capability.

The SQLAlchemy adapter lives in ``modelvalidate.integrations.sqlalchemy`` and
is imported explicitly so SQLAlchemy stays an optional dependency.
"""
