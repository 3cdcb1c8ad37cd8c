"""
==============================================================================
Pattern Extractor Module
==============================================================================

Finds the J5 storage label code inside sanitized text.

Grammar:
--------
    J5-STR-NNNNNN-NNNNN-NNNNN-NNNNNN

Matching Strategy:
-----------------
1. Exact: the upper-cased text already is a valid code
2. Loose: a noisy substring (odd separators, spaces, lower case) is located,
   canonicalized and validated again against the exact grammar

Loose recovery only widens what can be *found*; whatever is returned has
passed the exact grammar.

==============================================================================
"""

from __future__ import annotations

import logging
import re
from typing import Optional


# Module logger
logger = logging.getLogger(__name__)


class PatternExtractor:
    """
    Extractor for J5 storage label codes.

    Example:
        >>> extractor = PatternExtractor()
        >>> extractor.extract("J5 -- STR --264019--00016--41131--336923")
        'J5-STR-264019-00016-41131-336923'
        >>> extractor.extract("4006381333931") is None
        True
    """

    # Final validator; ASCII digits only
    EXACT_PATTERN = re.compile(r"J5-STR-[0-9]{6}-[0-9]{5}-[0-9]{5}-[0-9]{6}")

    # Noise-tolerant locator
    LOOSE_PATTERN = re.compile(
        r"J5[^A-Z0-9]*STR"
        r"[^A-Z0-9]+[0-9]{6}"
        r"[^A-Z0-9]+[0-9]{5}"
        r"[^A-Z0-9]+[0-9]{5}"
        r"[^A-Z0-9]+[0-9]{6}(?![0-9])"
    )

    PREFIX_PATTERN = re.compile(r"^J5[^A-Z0-9]*STR")
    SEPARATOR_PATTERN = re.compile(r"[^A-Z0-9]+")

    def is_valid(self, code: str) -> bool:
        """Check a string against the exact grammar."""
        return bool(code) and self.EXACT_PATTERN.fullmatch(code) is not None

    def extract(self, text: str) -> Optional[str]:
        """
        Extract the canonical code from sanitized text.

        Args:
            text: Sanitized decoder text

        Returns:
            Canonical code, or None if the text holds no valid code
        """
        if not text:
            return None

        upper = text.upper()

        if self.is_valid(upper):
            return upper

        match = self.LOOSE_PATTERN.search(upper)
        if not match:
            return None

        candidate = self.canonicalize(match.group(0))

        if not self.is_valid(candidate):
            logger.debug(f"Loose match rejected after canonicalization: {candidate!r}")
            return None

        logger.debug(f"Recovered code {candidate} from {text!r}")
        return candidate

    def canonicalize(self, fragment: str) -> str:
        """
        Rewrite a loosely matched fragment into canonical form.

        Args:
            fragment: Substring located by LOOSE_PATTERN

        Returns:
            Upper-cased fragment with canonical separators
        """
        canonical = self.PREFIX_PATTERN.sub("J5-STR", fragment.upper())
        canonical = self.SEPARATOR_PATTERN.sub("-", canonical)
        return canonical.strip("-")


def extract_code(text: str) -> Optional[str]:
    """
    Convenience function to extract a code with a fresh extractor.

    Args:
        text: Sanitized decoder text

    Returns:
        Canonical code or None
    """
    return PatternExtractor().extract(text)
