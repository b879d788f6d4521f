"""Configuration for the sync run."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SyncConfig(BaseSettings):
    """Settings for external endpoints, quick links and the user directory."""

    model_config = SettingsConfigDict(
        env_prefix="SYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # External sites
    secret: str = Field(default="", description="Shared secret sent as ?secret= to every endpoint")
    sites: str = Field(default="", description="Comma-separated list of endpoint URLs")
    fetch_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Per-request HTTP timeout",
    )
    fetch_deadline_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Overall deadline for one source's snapshot, retries included",
    )
    fetch_concurrency: int = Field(default=4, ge=1, le=32)
    excerpt_length: int = Field(default=300, ge=10)

    # Quick links
    quicklinks_path: Path | None = Field(
        default=None,
        description="JSON quick-links configuration; unset disables the source",
    )

    # User directory
    users_enabled: bool = True
    user_table: str = Field(default="users", pattern=r"^[A-Za-z_][A-Za-z0-9_.]*$")
    user_profile_url: str = Field(
        default="/user/profile.php?id={id}",
        description="Profile URL template; {id} is the user id",
    )

    @property
    def site_endpoints(self) -> list[str]:
        """Configured endpoints, trimmed, empties and repeats removed."""
        endpoints: list[str] = []
        for site in self.sites.split(","):
            site = site.strip()
            if site and site not in endpoints:
                endpoints.append(site)
        return endpoints
