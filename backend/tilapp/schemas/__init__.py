# Schemas package init
"""
TIL Backend — Pydantic Request/Response Schemas
===============================================

What:  The API contract between clients and the backend.
How:   FastAPI validates request bodies against these models, serializes
       responses through them and builds the OpenAPI document from them.

Schemas are separate from the SQLAlchemy models so that internal columns
(password hashes, token ownership) never leak into responses.
"""
