"""
==============================================================================
Validation Utilities Module
==============================================================================

Validation classes for login input.

This module implements:
- EmailValidator: Validates operator e-mail addresses
- PasswordValidator: Validates password length

Validation Rules:
----------------
- E-mail: one "@", non-empty local part, dotted domain, no spaces,
  stored lowercase
- Password: 6-128 characters

==============================================================================
"""

from __future__ import annotations

import re
from typing import Optional, Tuple


class EmailValidator:
    """
    Validator for operator e-mail addresses.

    Example:
        >>> validator = EmailValidator()
        >>> validator.validate(" Operator@Labelscan.Local ")
        (True, 'operator@labelscan.local', None)
    """

    PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

    MAX_LENGTH = 254

    def validate(self, email: str) -> Tuple[bool, Optional[str], Optional[str]]:
        """
        Validate and normalize an e-mail address.

        Args:
            email: Raw e-mail input

        Returns:
            Tuple of (is_valid, normalized_email, error_message)
        """
        if not email:
            return False, None, "E-mail is required"

        email = email.strip()

        if len(email) > self.MAX_LENGTH:
            return False, None, f"E-mail must be at most {self.MAX_LENGTH} characters"

        if not self.PATTERN.match(email):
            return False, None, "E-mail address is not valid"

        return True, email.lower(), None


class PasswordValidator:
    """Validator for login passwords."""

    MIN_LENGTH = 6
    MAX_LENGTH = 128

    def validate(self, password: str) -> Tuple[bool, Optional[str]]:
        """
        Validate a password.

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not password:
            return False, "Password is required"

        if len(password) < self.MIN_LENGTH:
            return False, f"Password must be at least {self.MIN_LENGTH} characters"

        if len(password) > self.MAX_LENGTH:
            return False, f"Password must be at most {self.MAX_LENGTH} characters"

        return True, None
