# Middleware package init
"""
Pantry API — Middleware Package
================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Request ID] → [Rate Limit] → [Access Log] → [GZip] → [CORS] → Route

    1. Request ID first, so every later log line and error body, including a
       429 from the rate limiter, carries the correlation id
    2. Rate Limit rejects abusive clients before any route work
    3. Access Log measures the route plus the inner middleware

Authentication is not middleware: it is a route dependency (pantry_api.auth)
because public food reads accept anonymous callers.
"""
