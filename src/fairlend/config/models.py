"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, fairlend.toml only contains overrides.
An empty file gives the production routing gate and an offline sync store.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from fairlend.domain.routing import (
    DEFAULT_PUBLIC_PATHS,
    DEFAULT_PUBLIC_SUBDOMAIN,
    DEFAULT_RESTRICTED_ROLES,
    ROLE_RULE_PRIORITY,
    SUBDOMAIN_RULE_PRIORITY,
    UNDER_CONSTRUCTION_PATH,
)

# --- fairlend.toml sections ---


class SubdomainRedirectConfig(BaseModel):
    """One ``[[routing.subdomain_redirects]]`` entry."""

    model_config = {"frozen": True}

    subdomain: str
    destination: str
    priority: int = SUBDOMAIN_RULE_PRIORITY
    name: str | None = None


class RoleRedirectConfig(BaseModel):
    """One ``[[routing.role_redirects]]`` entry.

    ``roles`` lists the roles that trigger the redirect; ``include_no_role``
    also triggers it for authenticated users without a role.
    """

    model_config = {"frozen": True}

    roles: list[str] = Field(default_factory=list)
    include_no_role: bool = False
    destination: str
    priority: int = ROLE_RULE_PRIORITY
    name: str | None = None
    require_subdomain: bool = False
    exclude_subdomain: bool = False


class RoutingConfig(BaseModel):
    """[routing] section."""

    model_config = {"frozen": True}

    root_domain: str = "localhost:3000"
    public_subdomain: str | None = DEFAULT_PUBLIC_SUBDOMAIN
    landing_only: bool = True
    restricted_access: bool = True
    restricted_destination: str = UNDER_CONSTRUCTION_PATH
    public_paths: list[str] = Field(default_factory=lambda: list(DEFAULT_PUBLIC_PATHS))
    restricted_roles: list[str] = Field(default_factory=lambda: list(DEFAULT_RESTRICTED_ROLES))
    subdomain_redirects: list[SubdomainRedirectConfig] = Field(default_factory=list)
    role_redirects: list[RoleRedirectConfig] = Field(default_factory=list)

    @field_validator("restricted_destination")
    @classmethod
    def _absolute_path(cls, value: str) -> str:
        if not value.startswith("/"):
            msg = "restricted_destination must start with '/'"
            raise ValueError(msg)
        return value


class LedgerConfig(BaseModel):
    """[ledger] section."""

    model_config = {"frozen": True}

    default_currency: str = "CAD"
    address_display_length: int = 24


class SyncConfig(BaseModel):
    """[sync] section."""

    model_config = {"frozen": True}

    lookback_days: int = 1
    max_range_days: int = 90
    backfill_years: int = 2
    recent_logs_limit: int = 10
    schedule_description: str = "Daily at 11 PM UTC"


class RotessaConfig(BaseModel):
    """[rotessa] section. The API key is normally supplied via env var."""

    model_config = {"frozen": True}

    base_url: str = "https://api.rotessa.com/v1"
    api_key: str | None = None
    timeout_seconds: float = 30.0


class DatabaseConfig(BaseModel):
    """[database] section. Relative paths resolve against the project root."""

    model_config = {"frozen": True}

    path: str = ".fairlend/fairlend.db"


class FairlendConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    routing: RoutingConfig = Field(default_factory=RoutingConfig)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    rotessa: RotessaConfig = Field(default_factory=RotessaConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
