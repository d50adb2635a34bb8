"""
Application wiring: lifespan, CORS and problem-details handlers.
"""
