"""
Services Module

Business operations used by the API routers:
- accounts: Registration, login, password changes, profile updates, account deletion
- events: Audit event recording and owner-scoped event queries
- notifications: Owner-scoped notification inbox
- pagination: Page/limit helpers for Tortoise querysets
"""
