"""Multi-tenant inventory tracking service."""
