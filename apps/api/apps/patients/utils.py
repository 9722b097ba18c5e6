"""
Patient display helpers.
"""
from typing import Optional


def mask_email(email: Optional[str]) -> str:
    """
    Mask email for display.

    Shows first letter + *** + @domain
    Example: john.doe@example.com -> j***@example.com
    """
    if not email or '@' not in email:
        return ""

    local, domain = email.split('@', 1)

    if len(local) == 0:
        return email

    return f"{local[0]}***@{domain}"
