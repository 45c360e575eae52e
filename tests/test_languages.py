"""
Tests for language-code helpers.
"""

from locsync.i18n.languages import get_language_name, is_rtl, normalize_language_code, parse_language_list


def test_normalize():
    assert normalize_language_code("pt_BR") == "pt-br"
    assert normalize_language_code(" ES ") == "es"
    assert normalize_language_code("Spanish") == "es"


def test_language_name_falls_back_to_base():
    assert get_language_name("es") == "Spanish"
    assert get_language_name("pt-BR") == "Portuguese (Brazil)"
    assert get_language_name("fr-CA") == "French"
    assert get_language_name("xx") == "xx"


def test_rtl():
    assert is_rtl("ar")
    assert is_rtl("he-IL")
    assert not is_rtl("en")


def test_parse_language_list():
    assert parse_language_list("es, fr,,de,es") == ["es", "fr", "de"]
    assert parse_language_list("") == []
