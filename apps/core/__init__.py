"""
Platform core application.

Provides:
- Base models with UUID keys and soft delete
- JWT request authentication
- Error taxonomy and the API exception handler
- Structured logging, request ids and cache helpers
- Health check endpoint
"""
