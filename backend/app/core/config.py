# app/core/config.py
import os

from dotenv import load_dotenv


def str_to_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def parse_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]


def merge_unique(items: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for v in items:
        if v in seen:
            continue
        seen.add(v)
        out.append(v)
    return out


class Settings:
    def __init__(self) -> None:
        # Only load .env for local/dev. In prod, env vars come from the service config.
        self.ENV = os.getenv("ENV", "dev").strip().lower()  # dev | prod
        if self.ENV != "prod":
            load_dotenv()

        # ----------------------------
        # Server / logging
        # ----------------------------
        self.PORT = int(os.getenv("PORT", "4000"))
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper()

        # ----------------------------
        # Database
        # ----------------------------
        self.DATABASE_URL = os.getenv("DATABASE_URL", "").strip()

        # ----------------------------
        # CORS
        # ----------------------------
        cors_from_env = parse_csv(os.getenv("CORS_ORIGINS"))
        if self.ENV == "prod":
            # In prod: ONLY allow what you explicitly configure
            self.CORS_ORIGINS = merge_unique(cors_from_env)
        else:
            self.CORS_ORIGINS = merge_unique(cors_from_env) or ["*"]

        # ----------------------------
        # Auth / JWT
        # ----------------------------
        self.SECRET_KEY = os.getenv("SECRET_KEY", "")
        self.JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
        self.AUTH_HEADER_NAME = os.getenv("AUTH_HEADER_NAME", "auth-token").strip() or "auth-token"

        # 0 = token carries no exp claim
        self.REGISTRATION_TOKEN_EXPIRE_HOURS = int(os.getenv("REGISTRATION_TOKEN_EXPIRE_HOURS", "24"))
        self.LOGIN_TOKEN_EXPIRE_HOURS = int(os.getenv("LOGIN_TOKEN_EXPIRE_HOURS", "0"))
        self.FEDERATED_TOKEN_EXPIRE_HOURS = int(os.getenv("FEDERATED_TOKEN_EXPIRE_HOURS", "0"))

        # Historical status codes. Set both to 401 to normalize.
        self.INVALID_TOKEN_STATUS = int(os.getenv("INVALID_TOKEN_STATUS", "400"))
        self.FEDERATION_ERROR_STATUS = int(os.getenv("FEDERATION_ERROR_STATUS", "500"))

        # Ownership policy for PUT /api/jobEntries/{id}
        self.JOB_UPDATE_REQUIRES_OWNER = str_to_bool(os.getenv("JOB_UPDATE_REQUIRES_OWNER"), default=False)

        # ----------------------------
        # Google identity federation
        # ----------------------------
        self.GOOGLE_CLIENT_ID = (
            os.getenv("GOOGLE_CLIENT_ID") or os.getenv("VUE_APP_GOOGLE_CLIENT_ID") or ""
        ).strip()
        self.GOOGLE_JWKS_URL = os.getenv(
            "GOOGLE_JWKS_URL", "https://www.googleapis.com/oauth2/v3/certs"
        ).strip()
        self.GOOGLE_JWKS_CACHE_SECONDS = int(os.getenv("GOOGLE_JWKS_CACHE_SECONDS", "3600"))

        # Final: fail fast in prod
        self._validate_prod()

    def _validate_prod(self) -> None:
        if not self.is_prod:
            return

        missing: list[str] = []

        if not self.SECRET_KEY:
            missing.append("SECRET_KEY")
        if not self.DATABASE_URL:
            missing.append("DATABASE_URL")
        if not self.GOOGLE_CLIENT_ID:
            missing.append("GOOGLE_CLIENT_ID")
        if not self.CORS_ORIGINS:
            missing.append("CORS_ORIGINS")

        if self.DATABASE_URL.startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must not point at SQLite in prod")

        if missing:
            raise RuntimeError(f"Missing required prod env vars: {', '.join(missing)}")

    @property
    def is_prod(self) -> bool:
        return self.ENV == "prod"

    @property
    def database_url(self) -> str:
        return self.DATABASE_URL or "sqlite:///./jobboard.db"


settings = Settings()


def require_secret_key(app_settings: Settings | None = None) -> None:
    current = app_settings or settings
    if not current.SECRET_KEY or not current.SECRET_KEY.strip():
        raise RuntimeError("SECRET_KEY must be set")
