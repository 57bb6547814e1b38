"""
Identity and tenant membership application.

Provides:
- Global user identity (platform super-admins included)
- Per-tenant membership with a single role
- JWT validation for API callers
- Audit logging of module access administration
"""
