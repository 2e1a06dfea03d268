# Secure Messenger Test Suite
"""
Unit, security and integration tests.

Run with: pytest
Coverage: coverage run -m pytest && coverage report
"""
