"""
Tests for toolkit app.

This package contains test modules for:
- test_services.py: EmailService and send_email_task tests

Usage:
    pytest toolkit/tests/
"""
