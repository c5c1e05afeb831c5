# Middleware package init
"""
Trailpost Backend — Middleware Package
========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID: Generate correlation ID for logging and error bodies
    2. Logging: Log method, path, status and duration with that ID
    3. GZip / CORS: Applied by Starlette's built-in middleware

    The order is reversed for responses, so the request ID header is set
    on every response and logging sees the final status code.
"""
