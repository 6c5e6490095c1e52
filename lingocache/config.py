"""
Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Mapping

from pydantic_settings import BaseSettings

from lingocache.core.models import LanguageConfig, ResolutionContext


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # ==========================================================================
    # Environment
    # ==========================================================================

    log_level: str = "INFO"

    # ==========================================================================
    # Languages
    # ==========================================================================

    active_languages: str = "en,fr,es,de"
    default_language: str = "en"

    # "origin": language is resolved here from cookie/query/subdomain
    # "edge": an edge worker resolves it and forwards X-MCT-Target-Lang
    translation_mode: str = "origin"

    enable_ip_redirect: bool = False
    ipinfo_token: str = ""

    # Optional YAML overriding the language set and country table
    languages_file: str = ""

    # Comma-separated path prefixes that are always served untranslated
    excluded_paths: str = "/wp-admin,/wp-login.php,/wp-json,/wp-cron.php,/xmlrpc.php"

    # ==========================================================================
    # Translation Cache
    # ==========================================================================

    # "memory", "local" or "s3"
    cache_backend: str = "memory"
    cache_ttl: int = 3600
    local_cache_dir: str = "./data/cache"

    aws_region: str = "us-east-1"
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_s3_bucket: str = ""
    aws_s3_endpoint_url: str = ""

    # ==========================================================================
    # Translation Provider
    # ==========================================================================

    # "google" (Cloud Translation REST) or "llm" (DSPy)
    translation_provider: str = "google"
    google_api_key: str = ""

    # A glossary routes translation through the v3 API and needs a project
    google_glossary_id: str = ""
    google_project_id: str = ""
    google_location: str = "us-central1"

    llm_provider: str = "gemini"
    llm_model: str = "gemini-2.0-flash"
    llm_api_key: str = ""

    provider_timeout: float = 10.0
    provider_batch_size: int = 100
    max_concurrency: int = 8

    # ==========================================================================
    # Helpers
    # ==========================================================================

    @property
    def trusts_edge(self) -> bool:
        """Whether the X-MCT-Target-Lang header comes from our own edge layer."""
        return self.translation_mode == "edge"

    def language_config(self) -> LanguageConfig:
        """Build the injected active language set."""
        return LanguageConfig.from_string(self.active_languages, self.default_language)

    def request_context(
        self,
        headers: Mapping[str, str] | None = None,
        query_params: Mapping[str, str] | None = None,
        cookies: Mapping[str, str] | None = None,
        country: str | None = None,
    ) -> ResolutionContext:
        """Collect request signals, trusting the edge header only in edge mode."""
        return ResolutionContext.from_request(
            headers, query_params, cookies, country, trusted_edge=self.trusts_edge
        )

    def excluded_path_prefixes(self) -> list[str]:
        """Parsed `excluded_paths`."""
        return [p.strip() for p in self.excluded_paths.split(",") if p.strip()]

    def missing_configuration(self) -> list[str]:
        """
        List required settings that are absent for the selected backends.

        An empty list means the configured backends can be constructed.
        """
        missing: list[str] = []

        if self.cache_backend == "s3" and not self.aws_s3_bucket:
            missing.append("aws_s3_bucket")

        if self.translation_provider == "google":
            if not self.google_api_key:
                missing.append("google_api_key")
            if self.google_glossary_id and not self.google_project_id:
                missing.append("google_project_id")
        elif self.translation_provider == "llm":
            if not self.llm_api_key:
                missing.append("llm_api_key")

        if self.enable_ip_redirect and not self.ipinfo_token:
            missing.append("ipinfo_token")

        return missing

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
