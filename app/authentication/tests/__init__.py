"""
Tests for authentication app.

This package contains test modules for:
- test_models.py: User roles, manager and role predicates

Usage:
    pytest authentication/tests/
"""
