# eventflow/core/__init__.py
"""
Core application modules.
Contains essential infrastructure components:
- audit: Queue-backed append-only writer for audit events
- bootstrap: Demo data creation
- db: Database configuration and connection management
- errors: API error classes and exception handlers
- security: Password hashing and JWT access/refresh tokens
"""
