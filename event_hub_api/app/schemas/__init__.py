"""
Pydantic schema definitions for API payloads.

Each domain (users, events, payments, analytics) defines its own
models for request and response bodies.  Schemas are separated from
the SQLite rows to decouple the API representation from persistence.
All models share ``CamelModel`` so the JSON wire format uses camelCase
while Python code uses snake_case attribute names.
"""
