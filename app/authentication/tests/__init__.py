"""
Tests for authentication app.

This package contains test modules for:
- test_models.py: User role helpers
- test_managers.py: UserManager create_user/create_superuser

Usage:
    pytest authentication/tests/
    pytest authentication/tests/test_models.py
"""
