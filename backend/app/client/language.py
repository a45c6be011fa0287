import os
from typing import Mapping, Optional

from app.client.i18n import DEFAULT_LANGUAGE, LANGUAGES, translate
from app.client.local_store import LANGUAGE_STORAGE_KEY, LocalStore


def _locale_language(environ: Mapping[str, str]) -> Optional[str]:
    # LANG=zh_CN.UTF-8 -> "zh"
    for var in ("LC_ALL", "LANG"):
        value = environ.get(var) or ""
        prefix = value.split(".")[0].replace("-", "_").split("_")[0].lower()
        if prefix:
            return prefix
    return None


class LanguageStore:
    def __init__(self, store: LocalStore, environ: Optional[Mapping[str, str]] = None):
        self.store = store
        self.environ = os.environ if environ is None else environ
        self.language = DEFAULT_LANGUAGE

    def load(self) -> str:
        """Saved preference, else the process locale when it is Chinese, else English."""
        saved = self.store.get(LANGUAGE_STORAGE_KEY)
        if saved in LANGUAGES:
            self.language = saved
        elif _locale_language(self.environ) == "zh":
            self.language = "zh"
        else:
            self.language = DEFAULT_LANGUAGE
        return self.language

    def set(self, language: str) -> None:
        if language not in LANGUAGES:
            raise ValueError(f"Unsupported language '{language}'")
        self.language = language
        self.store.set(LANGUAGE_STORAGE_KEY, language)

    def toggle(self) -> str:
        self.set("zh" if self.language == "en" else "en")
        return self.language

    def t(self, key: str) -> str:
        return translate(key, self.language)
