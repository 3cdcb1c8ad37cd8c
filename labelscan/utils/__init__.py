"""
==============================================================================
Utilities Package
==============================================================================

Utility classes and functions for the application.

Modules:
--------
- validators: Login input validation

==============================================================================
"""

from .validators import EmailValidator, PasswordValidator

__all__ = [
    "EmailValidator",
    "PasswordValidator",
]
