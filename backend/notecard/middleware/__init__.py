# Middleware package init
"""
Notecard — Middleware Package
===============================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Access Log] → [GZip] → [CORS] → Route Handler

    The request ID is set first so the access log line and every handler log
    line of the same request carry it.
"""
