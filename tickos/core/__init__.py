"""Core scheduling primitives (events and errors).

Kept free of FastAPI and Redis concerns so it can be reused by the host, the API and tests.
"""
