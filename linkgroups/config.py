import os
from pathlib import Path


BASE_DIR = Path(__file__).resolve().parent.parent


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "default-secret-key")
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", f"sqlite:///{BASE_DIR / 'linkgroups.db'}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SCHEDULER_ENABLED = os.environ.get("SCHEDULER_ENABLED", "1") == "1"
    ORPHAN_SWEEP_INTERVAL_MINUTES = int(
        os.environ.get("ORPHAN_SWEEP_INTERVAL_MINUTES", "1440")
    )
    LINKS_PER_PAGE = int(os.environ.get("LINKS_PER_PAGE", "20"))
    SEARCH_RESULT_LIMIT = int(os.environ.get("SEARCH_RESULT_LIMIT", "50"))


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SCHEDULER_ENABLED = False
