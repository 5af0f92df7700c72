from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse

from sanctuary.config import API_PORT


@dataclass
class StartupProfile:
    role: str
    host: str
    port: int


def _require_valid_port(port: int, field_name: str = "port") -> None:
    if int(port) < 1 or int(port) > 65535:
        raise ValueError(f"{field_name} must be in range 1..65535")


def _require_non_empty_host(host: str) -> None:
    if not str(host or "").strip():
        raise ValueError("host is required")


def validate_api_profile(profile: StartupProfile) -> None:
    _require_non_empty_host(profile.host)
    _require_valid_port(profile.port)


def validate_portal_profile(profile: StartupProfile, api_base_url: str) -> None:
    _require_non_empty_host(profile.host)
    _require_valid_port(profile.port)
    if int(profile.port) == int(API_PORT):
        raise ValueError(f"Portal port {profile.port} conflicts with API port {API_PORT}")

    parsed = urlparse(str(api_base_url or "").strip())
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError("api_base_url must be a valid http(s) URL")
