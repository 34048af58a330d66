"""
Toolkit - shared services that are not tied to one domain app.

Key components:
    - services/email.py: EmailService (template rendering + sending)
    - tasks.py: send_email_task for queued delivery

Usage:
    from toolkit.services.email import EmailService

Note:
    This app has no models. Its templates live in toolkit/templates/.
"""
