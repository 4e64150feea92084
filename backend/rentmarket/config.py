# backend/rentmarket/config.py
from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "dev-change-me"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ---- App ----
    app_env: str = "local"  # local|dev|prod
    database_url: str = "sqlite:///./rentmarket.db"
    create_tables_on_startup: bool = True

    # ---- CORS (used by main.py) ----
    cors_allow_origins: list[str] | str = ["*"]

    # ---- Auth ----
    auth_mode: str = "dev"  # dev|jwt
    dev_header_user_email: str = "X-User-Email"
    allow_admin_signup: bool = False

    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_exp_minutes: int = 60 * 24  # 24 hours

    # ---- Inquiries ----
    # True: a reply on a closed/interested/not_interested inquiry flips it back to "replied".
    # False: such replies are rejected with InquiryClosed.
    inquiry_reply_reopens: bool = True

    # ---- Listings ----
    default_page_size: int = 12
    max_page_size: int = 100

    # ---- Analytics ----
    analytics_default_period_days: int = 30
    top_groups_limit: int = 10
    recent_items_limit: int = 10

    def model_post_init(self, __context) -> None:
        env = (self.app_env or "local").strip().lower()
        if env not in ("prod", "production"):
            return

        if (self.auth_mode or "").strip().lower() == "dev":
            raise ValueError("SECURITY: auth_mode=dev is not allowed in prod")
        if self.jwt_secret == DEFAULT_JWT_SECRET:
            raise ValueError("SECURITY: jwt_secret must be set in prod")

        origins = self.cors_allow_origins
        if origins == "*" or origins == ["*"] or (isinstance(origins, str) and "*" in origins):
            raise ValueError("SECURITY: cors_allow_origins wildcard is not allowed in prod")
