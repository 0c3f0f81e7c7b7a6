"""
Small input checks shared by the services.
"""

import re
from typing import Optional

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def is_valid_email(email: Optional[str]) -> bool:
    """Loose syntactic check: one @, no whitespace, a dot in the domain."""
    return bool(email) and EMAIL_PATTERN.match(email.strip()) is not None
