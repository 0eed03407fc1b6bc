from __future__ import annotations

import os
from dataclasses import dataclass, field

from .errors import ConfigurationError


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_list(name: str) -> list[str]:
    raw = os.getenv(name) or ""
    return [part.strip() for part in raw.split(",") if part.strip()]


@dataclass(frozen=True)
class Settings:
    # Server
    listen_address: str = "0.0.0.0"
    listen_port: int = 8888
    log_level: str = "info"

    # Provider behavior
    ingress_label: str = "node-role.kubernetes.io/ingress"
    domain_filter: list[str] = field(default_factory=list)
    dry_run: bool = False
    sync_timeout_s: int = 60
    request_timeout_s: int = 10

    # OpenStack (Keystone v3 password auth)
    os_auth_url: str | None = None
    os_project_name: str | None = None
    os_user_domain_name: str | None = None
    os_project_domain_id: str | None = None
    os_username: str | None = None
    os_password: str | None = None
    os_region_name: str | None = None
    os_interface: str = "public"
    os_identity_api_version: str = "3"
    verify_tls: bool = True

    # Kubernetes; in-cluster service account when unset
    kube_api_url: str | None = None
    kube_token: str | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            listen_address=os.getenv("LANDBSYNC_LISTEN_ADDRESS", "0.0.0.0"),
            listen_port=_env_int("LANDBSYNC_LISTEN_PORT", 8888),
            log_level=os.getenv("LANDBSYNC_LOG_LEVEL", "info"),
            ingress_label=os.getenv("LANDBSYNC_INGRESS_LABEL", "node-role.kubernetes.io/ingress"),
            domain_filter=_env_list("LANDBSYNC_DOMAIN_FILTER"),
            dry_run=_env_bool("LANDBSYNC_DRY_RUN", False),
            sync_timeout_s=_env_int("LANDBSYNC_SYNC_TIMEOUT_S", 60),
            request_timeout_s=_env_int("LANDBSYNC_REQUEST_TIMEOUT_S", 10),
            os_auth_url=os.getenv("OS_AUTH_URL"),
            os_project_name=os.getenv("OS_PROJECT_NAME"),
            os_user_domain_name=os.getenv("OS_USER_DOMAIN_NAME"),
            os_project_domain_id=os.getenv("OS_PROJECT_DOMAIN_ID"),
            os_username=os.getenv("OS_USERNAME"),
            os_password=os.getenv("OS_PASSWORD"),
            os_region_name=os.getenv("OS_REGION_NAME"),
            os_interface=os.getenv("OS_INTERFACE", "public"),
            os_identity_api_version=os.getenv("OS_IDENTITY_API_VERSION", "3"),
            verify_tls=_env_bool("LANDBSYNC_VERIFY_TLS", True),
            kube_api_url=os.getenv("LANDBSYNC_KUBE_API_URL"),
            kube_token=os.getenv("LANDBSYNC_KUBE_TOKEN"),
        )

    def validate(self) -> None:
        """Raise ConfigurationError naming every missing OpenStack setting."""
        required = {
            "OS_AUTH_URL": self.os_auth_url,
            "OS_PROJECT_NAME": self.os_project_name,
            "OS_USER_DOMAIN_NAME": self.os_user_domain_name,
            "OS_PROJECT_DOMAIN_ID": self.os_project_domain_id,
            "OS_USERNAME": self.os_username,
            "OS_PASSWORD": self.os_password,
            "OS_REGION_NAME": self.os_region_name,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")
        if self.os_identity_api_version.strip() != "3":
            raise ConfigurationError(
                f"Unsupported OS_IDENTITY_API_VERSION '{self.os_identity_api_version}' (only 3 is supported)."
            )
        if self.sync_timeout_s <= 0 or self.request_timeout_s <= 0:
            raise ConfigurationError("Timeouts must be positive.")


def load_settings() -> Settings:
    return Settings.from_env()
