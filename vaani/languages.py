from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Mapping


@dataclass(frozen=True)
class LanguageOption:
    label: str
    code: str


LANGUAGE_OPTIONS: tuple[LanguageOption, ...] = (
    LanguageOption(label="English", code="en"),
    LanguageOption(label="हिन्दी (Hindi)", code="hi"),
    LanguageOption(label="తెలుగు (Telugu)", code="te"),
    LanguageOption(label="தமிழ் (Tamil)", code="ta"),
    LanguageOption(label="ಕನ್ನಡ (Kannada)", code="kn"),
    LanguageOption(label="മലയാളം (Malayalam)", code="ml"),
)


class LanguageCatalog:
    """Ordered, fixed set of languages a session may use."""

    def __init__(self, options: Iterable[LanguageOption]) -> None:
        normalized: list[LanguageOption] = []
        self._by_code: dict[str, LanguageOption] = {}
        for opt in options:
            code = str(opt.code).strip()
            if not code:
                raise ValueError(f"language code must not be empty: {opt!r}")
            if code in self._by_code:
                raise ValueError(f"duplicate language code: {code}")
            opt = LanguageOption(label=opt.label, code=code)
            normalized.append(opt)
            self._by_code[code] = opt
        if not normalized:
            raise ValueError("language catalog must not be empty")
        self._options = tuple(normalized)

    @classmethod
    def from_config(cls, entries: Iterable[Mapping[str, Any]] | None) -> "LanguageCatalog":
        if entries is None:
            return DEFAULT_CATALOG
        options: list[LanguageOption] = []
        for entry in entries:
            try:
                options.append(LanguageOption(label=str(entry["label"]), code=str(entry["code"])))
            except (KeyError, TypeError) as e:
                raise ValueError(f"language entry needs \"label\" and \"code\": {entry!r}") from e
        return cls(options)

    def list_languages(self) -> tuple[LanguageOption, ...]:
        return self._options

    def is_supported(self, code: str) -> bool:
        return code in self._by_code

    def label_for(self, code: str) -> str:
        opt = self._by_code.get(code)
        if opt is None:
            return str(code).upper()
        return opt.label

    def codes(self) -> list[str]:
        return [opt.code for opt in self._options]

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and self.is_supported(code)

    def __iter__(self) -> Iterator[LanguageOption]:
        return iter(self._options)

    def __len__(self) -> int:
        return len(self._options)


DEFAULT_CATALOG = LanguageCatalog(LANGUAGE_OPTIONS)
