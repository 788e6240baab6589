"""
Configuration and Character Set Tests
=====================================

Tests for DecoderConfig, its environment overrides and CharacterSet.
"""

import pytest

from cdtext.charset import CharacterSet
from cdtext.config import DecoderConfig


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every CDTEXT_* variable for the duration of a test."""
    for name in ("CDTEXT_VERIFY_CHECKSUMS", "CDTEXT_SKIP_INVALID", "CDTEXT_STRICT", "CDTEXT_CHARSET"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestDecoderConfig:
    """Tests for DecoderConfig defaults and overrides."""

    def test_defaults(self):
        config = DecoderConfig()
        assert config.verify_checksums
        assert not config.skip_invalid_checksums
        assert not config.strict
        assert config.default_character_set is CharacterSet.ISO_8859_1
        assert config.resolve_repeat_markers

    def test_with_overrides(self):
        config = DecoderConfig()
        strict = config.with_overrides(strict=True)
        assert strict.strict
        assert not config.strict

    def test_frozen(self):
        with pytest.raises(AttributeError):
            DecoderConfig().strict = True


class TestFromEnv:
    """Tests for DecoderConfig.from_env."""

    def test_no_variables(self, clean_env):
        assert DecoderConfig.from_env() == DecoderConfig()

    def test_flags(self, clean_env):
        clean_env.setenv("CDTEXT_VERIFY_CHECKSUMS", "off")
        clean_env.setenv("CDTEXT_SKIP_INVALID", "yes")
        clean_env.setenv("CDTEXT_STRICT", "1")
        config = DecoderConfig.from_env()
        assert not config.verify_checksums
        assert config.skip_invalid_checksums
        assert config.strict

    def test_charset(self, clean_env):
        clean_env.setenv("CDTEXT_CHARSET", "ms-jis")
        assert DecoderConfig.from_env().default_character_set is CharacterSet.MS_JIS

    def test_invalid_values_ignored(self, clean_env, caplog):
        clean_env.setenv("CDTEXT_STRICT", "maybe")
        clean_env.setenv("CDTEXT_CHARSET", "klingon")
        config = DecoderConfig.from_env()
        assert config == DecoderConfig()
        assert "CDTEXT_STRICT" in caplog.text
        assert "CDTEXT_CHARSET" in caplog.text


class TestCharacterSet:
    """Tests for CharacterSet."""

    def test_from_code(self):
        assert CharacterSet.from_code(0x00) is CharacterSet.ISO_8859_1
        assert CharacterSet.from_code(0x80) is CharacterSet.MS_JIS
        assert CharacterSet.from_code(0x42) is None

    def test_from_name(self):
        assert CharacterSet.from_name("ISO-8859-1") is CharacterSet.ISO_8859_1
        assert CharacterSet.from_name("korean") is CharacterSet.KOREAN

    def test_from_name_unknown(self):
        with pytest.raises(ValueError):
            CharacterSet.from_name("ebcdic")

    def test_width(self):
        assert CharacterSet.ASCII.width == 1
        assert CharacterSet.MANDARIN.width == 2
        assert CharacterSet.KOREAN.is_double_byte
        assert not CharacterSet.ISO_8859_1.is_double_byte

    def test_decode(self):
        assert CharacterSet.ISO_8859_1.decode(b"Caf\xe9") == "Café"
        assert CharacterSet.MS_JIS.decode("日本".encode("shift_jis")) == "日本"

    def test_decode_never_raises(self):
        assert CharacterSet.ASCII.decode(b"\xff") == "\ufffd"
