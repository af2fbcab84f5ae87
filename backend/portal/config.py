from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )

    # Storage
    data_dir: str = "data"
    storage_fail_open: bool = True  # absent/unreadable collection reads as []
    activity_log_max_entries: int = 10000
    stale_application_days: int = 7  # pending longer than this shows in the stale sweep

    # Auth
    session_secret: str
    session_ttl_minutes: int = 1440

    # Discord
    discord_bot_token: str = ""
    discord_guild_id: str = ""
    discord_api_base: str = "https://discord.com/api/v10"
    discord_notification_channel_id: str = ""
    discord_timeout_seconds: float = 5.0
    role_cache_ttl_seconds: int = 300

    # Role tiers (Discord role names)
    admin_roles: list[str] = ["Founders"]
    moderator_roles: list[str] = ["Moderator"]
    reviewer_roles: list[str] = ["Reviewer"]
    priority_roles: list[str] = ["VIP", "Donor", "Premium", "Supporter"]

    # Permission tiers: admin | moderator | reviewer
    permission_review_applications: str = "reviewer"
    permission_manage_bans: str = "moderator"
    permission_view_activity_log: str = "moderator"
    permission_manage_application_types: str = "admin"

    # Email
    email_mode: str = "dev"  # dev | prod | disabled
    sendgrid_api_key: str = ""
    email_from: str = "noreply@example.com"
    server_name: str = "FiveM Roleplay"

    # App
    allowed_origins: str = ""
    debug: bool = False


settings = Settings()
