from __future__ import annotations

import pytest

from vaani.languages import DEFAULT_CATALOG, LanguageCatalog, LanguageOption


def test_default_catalog_order_and_codes() -> None:
    assert DEFAULT_CATALOG.codes() == ["en", "hi", "te", "ta", "kn", "ml"]
    assert DEFAULT_CATALOG.list_languages()[0] == LanguageOption(label="English", code="en")
    assert len(DEFAULT_CATALOG) == 6


def test_is_supported_is_exact_match() -> None:
    assert DEFAULT_CATALOG.is_supported("hi")
    assert not DEFAULT_CATALOG.is_supported("HI")
    assert not DEFAULT_CATALOG.is_supported("fr")
    assert "ta" in DEFAULT_CATALOG
    assert 42 not in DEFAULT_CATALOG


def test_label_for_falls_back_to_code() -> None:
    assert DEFAULT_CATALOG.label_for("te") == "తెలుగు (Telugu)"
    assert DEFAULT_CATALOG.label_for("fr") == "FR"


def test_catalog_rejects_duplicates_and_empty() -> None:
    with pytest.raises(ValueError):
        LanguageCatalog([])
    with pytest.raises(ValueError):
        LanguageCatalog([LanguageOption("English", "en"), LanguageOption("Also English", "en")])
    with pytest.raises(ValueError):
        LanguageCatalog([LanguageOption("Blank", "  ")])


def test_from_config_builds_custom_catalog() -> None:
    catalog = LanguageCatalog.from_config(
        [{"label": "English", "code": "en"}, {"label": "Español", "code": "es"}]
    )
    assert catalog.codes() == ["en", "es"]
    assert [opt.label for opt in catalog] == ["English", "Español"]
    assert LanguageCatalog.from_config(None) is DEFAULT_CATALOG


def test_from_config_rejects_empty_list_and_incomplete_entries() -> None:
    with pytest.raises(ValueError):
        LanguageCatalog.from_config([])
    with pytest.raises(ValueError):
        LanguageCatalog.from_config([{"label": "English"}])
    with pytest.raises(ValueError):
        LanguageCatalog.from_config([{"code": "en"}])
    with pytest.raises(ValueError):
        LanguageCatalog.from_config(["en"])


def test_listed_codes_are_stripped_and_supported() -> None:
    catalog = LanguageCatalog.from_config([{"label": "Hindi", "code": " hi "}, {"label": "English", "code": "en"}])

    assert catalog.codes() == ["hi", "en"]
    assert catalog.list_languages()[0] == LanguageOption(label="Hindi", code="hi")
    assert all(catalog.is_supported(opt.code) for opt in catalog.list_languages())
    assert catalog.label_for("hi") == "Hindi"
