# Middleware package init
"""
TIL Backend — Middleware Package
================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Rate Limit] → [Request ID] → [Logging] → [Session] → [GZip] → [CORS] → Route

    1. Rate Limit: reject abusive clients before any work is done
    2. Request ID: correlation id for log lines and error bodies
    3. Logging: one access line per request, with the request id
    4. Session: signed cookie read into request.session (website login)

Responses travel the chain in reverse, so the X-Request-ID header and the
access log line see the final status code.
"""
