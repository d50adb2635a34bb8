"""
Public routers - No authentication required.
- /api/health, /status - Liveness and readiness checks
"""
