from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

DEFAULT_APPVIEW = "https://public.api.bsky.app"
DEFAULT_PLC_DIRECTORY = "https://plc.directory"
DEFAULT_PDS = "https://bsky.social"
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_PROVIDER_NAME = "xbsky.app"
DEFAULT_PROVIDER_URL = "https://xbsky.app"
DEFAULT_INDEX_REDIRECT = "https://github.com/colduw/xbsky"


@lru_cache(maxsize=1)
def _load_dotenv() -> None:
    try:
        from dotenv import find_dotenv, load_dotenv

        env_path = find_dotenv(usecwd=True)
        if env_path:
            load_dotenv(env_path, override=False)
    except Exception:
        return


@dataclass(frozen=True)
class Settings:
    appview: str = DEFAULT_APPVIEW
    plc_directory: str = DEFAULT_PLC_DIRECTORY
    default_pds: str = DEFAULT_PDS
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    ffmpeg: str | None = None
    provider_name: str = DEFAULT_PROVIDER_NAME
    provider_url: str = DEFAULT_PROVIDER_URL
    index_redirect: str = DEFAULT_INDEX_REDIRECT


def _parse_url(value: str, *, default: str) -> str:
    cleaned = value.strip().rstrip("/")
    if not cleaned.startswith(("http://", "https://")):
        return default
    return cleaned


def _parse_positive_float(value: str, *, default: float) -> float:
    cleaned = value.strip()
    if not cleaned:
        return default
    try:
        parsed = float(cleaned)
    except ValueError:
        return default
    if parsed <= 0:
        return default
    return parsed


def _ffmpeg_path(value: str) -> str | None:
    configured = value.strip()
    if configured:
        return configured
    return shutil.which("ffmpeg")


def _settings_from_env() -> Settings:
    _load_dotenv()
    return Settings(
        appview=_parse_url(
            os.environ.get("SKYEMBED_APPVIEW", ""), default=DEFAULT_APPVIEW
        ),
        plc_directory=_parse_url(
            os.environ.get("SKYEMBED_PLC_DIRECTORY", ""),
            default=DEFAULT_PLC_DIRECTORY,
        ),
        default_pds=_parse_url(
            os.environ.get("SKYEMBED_DEFAULT_PDS", ""), default=DEFAULT_PDS
        ),
        timeout=_parse_positive_float(
            os.environ.get("SKYEMBED_TIMEOUT", ""),
            default=DEFAULT_TIMEOUT_SECONDS,
        ),
        ffmpeg=_ffmpeg_path(os.environ.get("SKYEMBED_FFMPEG", "")),
        provider_name=(os.environ.get("SKYEMBED_PROVIDER_NAME") or "").strip()
        or DEFAULT_PROVIDER_NAME,
        provider_url=_parse_url(
            os.environ.get("SKYEMBED_PROVIDER_URL", ""),
            default=DEFAULT_PROVIDER_URL,
        ),
        index_redirect=_parse_url(
            os.environ.get("SKYEMBED_INDEX_REDIRECT", ""),
            default=DEFAULT_INDEX_REDIRECT,
        ),
    )


def build_settings(overrides: dict[str, Any] | None = None) -> Settings:
    env = _settings_from_env()
    if not overrides:
        return env
    return Settings(
        appview=_parse_url(
            str(overrides.get("appview") or ""), default=env.appview
        ),
        plc_directory=_parse_url(
            str(overrides.get("plc_directory") or ""), default=env.plc_directory
        ),
        default_pds=_parse_url(
            str(overrides.get("default_pds") or ""), default=env.default_pds
        ),
        timeout=_parse_positive_float(
            str(overrides.get("timeout") or ""), default=env.timeout
        ),
        ffmpeg=str(overrides.get("ffmpeg") or "").strip() or env.ffmpeg,
        provider_name=str(overrides.get("provider_name") or "").strip()
        or env.provider_name,
        provider_url=_parse_url(
            str(overrides.get("provider_url") or ""), default=env.provider_url
        ),
        index_redirect=_parse_url(
            str(overrides.get("index_redirect") or ""),
            default=env.index_redirect,
        ),
    )
