"""
Authentication application.

Email-based User model with a marketplace role, plus JWT token endpoints.

Usage:
    from authentication.models import User, UserRole
"""
