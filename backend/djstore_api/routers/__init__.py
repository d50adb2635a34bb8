"""
Routers of the REST API.

- public.health: liveness and readiness checks
- products: /api/v1/products
"""
