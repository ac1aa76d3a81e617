"""
FastAPI routes, request dependencies and schemas.
"""
