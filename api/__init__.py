"""
FastAPI REST API for the BookSwap book exchange.

This package provides:
- Account registration, login and profile management
- Book listing CRUD and likes
- Bearer-token authentication and rate limiting
"""
