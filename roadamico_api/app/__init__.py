"""
Application package initializer.

The application is organised by layer: ``core`` (configuration,
storage, security, authorization predicates), ``schemas`` (request and
response models), ``services`` (business logic over SQLite) and
``api`` (versioned routers).
"""

from .main import app  # noqa: F401
