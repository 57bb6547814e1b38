"""
Module access application.

Resolves which workspace modules each tenant user may see:
- Platform module registry and curated templates
- Tenant enablement (the access ceiling)
- Tenant-custom role matrix and per-user grant/revoke overrides
- Grouped workspace navigation
"""
