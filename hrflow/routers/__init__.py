"""
HRFlow - Routers Package

FastAPI route handlers.

Routers:
- approvals: Payroll submission and per-level approve/reject
- notifications: The current user's in-app notifications
"""

from hrflow.routers import approvals, notifications

__all__ = ["approvals", "notifications"]
