"""
Service layer.

Each service encapsulates the business logic for a domain and talks to
SQLite through ``core.db``.  Services raise ``LookupError`` for missing
records, ``PermissionError`` for authorization failures and
``ValueError`` for business-rule violations; endpoints translate these
into HTTP responses.
"""
