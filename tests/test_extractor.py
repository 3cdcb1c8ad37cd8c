"""
==============================================================================
Pattern Extractor Tests
==============================================================================
"""

import pytest

from labelscan.pipeline import PatternExtractor, extract_code, sanitize


CODE = "J5-STR-264019-00016-41131-336923"


@pytest.fixture
def extractor() -> PatternExtractor:
    return PatternExtractor()


class TestExactGrammar:
    """Tests for strict grammar validation."""

    def test_exact_code(self, extractor: PatternExtractor):
        assert extractor.extract(CODE) == CODE

    def test_lowercase_is_uppercased(self, extractor: PatternExtractor):
        assert extractor.extract(CODE.lower()) == CODE

    @pytest.mark.parametrize("code", [
        "J5-STR-26401-00016-41131-336923",
        "J5-STR-264019-0016-41131-336923",
        "J5-STR-264019-00016-4113-336923",
        "J5-STR-264019-00016-41131-33692",
        "J6-STR-264019-00016-41131-336923",
        "J5-STX-264019-00016-41131-336923",
    ])
    def test_wrong_group_rejected(self, extractor: PatternExtractor, code: str):
        assert not extractor.is_valid(code)
        assert extractor.extract(code) is None

    def test_non_ascii_digits_rejected(self, extractor: PatternExtractor):
        """Test Arabic-Indic digits do not count as digits."""
        assert not extractor.is_valid("J5-STR-٢٦٤٠١٩-00016-41131-336923")

    @pytest.mark.parametrize("suffix", ["\n", " ", "\r\n", "\t"])
    def test_trailing_whitespace_not_valid(self, extractor: PatternExtractor, suffix: str):
        """Test the exact grammar covers the whole string, trailing newline included."""
        assert not extractor.is_valid(CODE + suffix)

    @pytest.mark.parametrize("suffix", ["\n", " "])
    def test_trailing_whitespace_never_returned(self, suffix: str):
        assert extract_code(CODE + suffix) == CODE

    def test_empty(self, extractor: PatternExtractor):
        assert extractor.extract("") is None
        assert not extractor.is_valid("")


class TestLooseRecovery:
    """Tests for noisy-separator recovery."""

    def test_noisy_separators(self, extractor: PatternExtractor):
        text = sanitize("J5  ––  STR  ––264019––00016––41131––336923")
        assert extractor.extract(text) == CODE

    def test_embedded_in_longer_text(self, extractor: PatternExtractor):
        assert extractor.extract(f"LOC 12 / {CODE} / BIN") == CODE

    def test_prefix_without_separator(self, extractor: PatternExtractor):
        assert extractor.extract("J5STR 264019 00016 41131 336923") == CODE

    def test_underscores_and_slashes(self, extractor: PatternExtractor):
        assert extractor.extract("j5_str/264019/00016/41131/336923") == CODE

    def test_trailing_extra_digit_rejected(self, extractor: PatternExtractor):
        """Test a seventh digit in the last group is not silently dropped."""
        assert extractor.extract("J5 STR 264019 00016 41131 3369231") is None

    def test_letters_between_groups_rejected(self, extractor: PatternExtractor):
        assert extractor.extract("J5 STR 264019 X 00016 41131 336923") is None

    def test_canonicalize(self, extractor: PatternExtractor):
        assert extractor.canonicalize("j5 -- str --264019--00016--41131--336923") == CODE


class TestNonMatching:
    """Tests for inputs that never produce a code."""

    @pytest.mark.parametrize("text", [
        "4006381333931",
        "STR-264019-00016-41131-336923",
        "J5-STR",
        "hello world",
    ])
    def test_no_code(self, text: str):
        assert extract_code(text) is None

    def test_results_always_satisfy_exact_grammar(self, extractor: PatternExtractor):
        """Test every extracted code matches the exact grammar."""
        samples = [
            CODE,
            f"*{CODE}*",
            "J5 STR 264019 00016 41131 336923",
            "J5--STR--264019--00016--41131--336923 trailing",
        ]
        for sample in samples:
            result = extractor.extract(sanitize(sample))
            assert result is not None
            assert extractor.is_valid(result)
