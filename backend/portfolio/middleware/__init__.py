# Middleware package init
"""
Portfolio Backend — Middleware Package
========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Logging] → [Rate Limit] → [CORS] → Route Handler

    1. Request ID: correlation ID for logs, error bodies and the response header
    2. Logging:    one access-log line per request with status and duration
    3. Rate Limit: rejects over-budget clients before the route runs; the
                   429 body and header carry the request ID
    4. CORS:       FastAPI's CORSMiddleware (handles preflight)
"""
