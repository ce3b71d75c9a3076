"""
Application package initializer.

The project is organised by domain: users, events, payments and
analytics each have a schema module, a service and a router under
``api/v1/endpoints``.  Versioning is handled by grouping routers under
the ``api/<version>/`` hierarchy.
"""

from .main import app  # noqa: F401
