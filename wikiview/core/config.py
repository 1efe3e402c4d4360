#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Application configuration.

All values can be overridden via environment variables or a .env file.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from wikiview._version import __version__ as _pkg_version


# -----------------------------------------------------------------------------

class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ────────────────────────────────────────────────────────

    app_name: str = "WikiView"
    app_version: str = _pkg_version
    base_url: str = "http://localhost:8000"
    debug: bool = False
    environment: Literal["development", "testing", "production"] = "development"
    site_name: str = "WikiView"
    main_page_title: str = "Main Page"
    default_namespace: str = "Main"

    # ── Database ───────────────────────────────────────────────────────────

    database_url: str = "sqlite+aiosqlite:///./wikiview.db"
    db_echo: bool = False
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # ── Auth / JWT ─────────────────────────────────────────────────────────

    secret_key: str = "CHANGE-ME-IN-PRODUCTION-use-a-random-64-char-hex-string"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 8   # 8 hours

    # ── Robot policies ─────────────────────────────────────────────────────

    default_robot_policy: str = "index,follow"
    # Namespace name -> "noindex,follow" style policy string
    namespace_robot_policies: dict[str, str] = {}
    # Prefixed title ("Main:Foo") -> policy string; beats __INDEX__/__NOINDEX__
    article_robot_policies: dict[str, str] = {}
    # Namespaces in which page authors may use __INDEX__ / __NOINDEX__
    noindex_namespaces_allowed: list[str] = ["Main"]

    # ── Caching ────────────────────────────────────────────────────────────

    use_render_cache: bool = True
    render_cache_expiry_seconds: int = 60 * 60 * 24   # 1 day
    use_file_cache: bool = False
    file_cache_dir: Path = Path("./data/file_cache")
    cdn_maxage: int = 60 * 60 * 24
    cdn_maxage_stale: int = 10

    # ── Page views ─────────────────────────────────────────────────────────

    send_404_code: bool = True
    render_timeout_seconds: float = 15.0
    # Rights everybody has, logged in or not
    anonymous_rights: list[str] = ["read", "edit", "createpage"]
    # Namespaces that anonymous visitors may not read
    read_restricted_namespaces: list[str] = []
    # Deleting a page with more revisions than this shows a warning
    big_delete_revisions_limit: int = 5000

    @property
    def is_testing(self) -> bool:
        return self.environment == "testing"

    @property
    def file_cache_dir_resolved(self) -> Path:
        p = self.file_cache_dir
        p.mkdir(parents=True, exist_ok=True)
        return p


# -----------------------------------------------------------------------------

@lru_cache
def get_settings() -> Settings:
    return Settings()


# -----------------------------------------------------------------------------
