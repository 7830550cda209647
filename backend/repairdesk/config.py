"""Application settings and validation."""

import os
from pathlib import Path

BASE = Path(__file__).resolve().parent.parent
DEFAULT_JWT_SECRET = "change_me_for_prod"


class Settings:
    ENV: str
    JWT_SECRET: str
    JWT_ALGORITHM: str
    JWT_EXPIRE_MINUTES: int
    DATABASE_URL: str
    UPLOAD_DIR: Path
    MAX_UPLOAD_BYTES: int
    ALLOW_INSECURE_JWT: bool
    ALLOW_DEV_CORS: bool
    LOG_LEVEL: str
    HOST: str
    PORT: int

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.JWT_SECRET = os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET)
        self.JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
        self.JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", "60"))
        self.DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE / 'repairdesk.db'}")
        self.UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR", str(BASE / "uploads"))).expanduser().resolve()
        self.MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))  # 5 MB default
        self.ALLOW_INSECURE_JWT = os.getenv("ALLOW_INSECURE_JWT", "false").lower() == "true"
        self.ALLOW_DEV_CORS = os.getenv("ALLOW_DEV_CORS", "true").lower() == "true"
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.HOST = os.getenv("HOST", "0.0.0.0")
        self.PORT = int(os.getenv("PORT", "3000"))
        self._validate()

    def _validate(self):
        if self.ENV != "dev" and not self.ALLOW_INSECURE_JWT and self.JWT_SECRET == DEFAULT_JWT_SECRET:
            raise RuntimeError("JWT_SECRET must be set to a non-default value in non-dev environments")
        if self.JWT_EXPIRE_MINUTES <= 0:
            raise RuntimeError("JWT_EXPIRE_MINUTES must be a positive number of minutes")


settings = Settings()
