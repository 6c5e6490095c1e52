"""
Language configuration loader.

Loads the active language set and country table from an optional YAML
file, falling back to environment settings:

    active_languages: [en, fr, es, de]
    default_language: en
    countries:          # merged over the built-in table
      BE: nl
      CH: de
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from lingocache.config import Settings
from lingocache.core.models import LanguageConfig
from lingocache.i18n.languages import COUNTRY_LANGUAGES


class LanguageConfigLoader:
    """
    Builds the injected LanguageConfig and country → language table.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def load(self, path: Path | str | None = None) -> tuple[LanguageConfig, dict[str, str]]:
        """
        Load configuration.

        Args:
            path: YAML file; defaults to `settings.languages_file`

        Returns:
            (language config, country table)
        """
        path = path or self.settings.languages_file
        config = self.settings.language_config()
        countries = dict(COUNTRY_LANGUAGES)

        if not path:
            return config, countries

        data = self._read(Path(path))

        if "active_languages" in data or "default_language" in data:
            config = LanguageConfig(
                active_languages=data.get("active_languages", config.active_languages),
                default_language=data.get("default_language", config.default_language),
            )

        overrides = data.get("countries") or {}
        if not isinstance(overrides, dict):
            raise ValueError(f"{path}: 'countries' must be a mapping")
        for country, lang in overrides.items():
            countries[str(country).strip().upper()] = str(lang).strip().lower()

        return config, countries

    @staticmethod
    def _read(path: Path) -> dict[str, Any]:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping at the top level")
        return data


def load_language_settings(
    settings: Settings,
    path: Path | str | None = None,
) -> tuple[LanguageConfig, dict[str, str]]:
    """Convenience function to load language configuration."""
    return LanguageConfigLoader(settings).load(path)
