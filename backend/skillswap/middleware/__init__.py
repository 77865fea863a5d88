# Middleware package init
"""
SkillSwap Backend — Middleware Package
========================================

What:  Cross-cutting concerns applied to every HTTP request.

Middleware Chain (order matters):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    1. Rate Limit first: reject abusive clients before any processing
    2. Request ID: correlation ID for logs and error bodies
    3. Logging: one access line per request, tagged with the request ID
"""
