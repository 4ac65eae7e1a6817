"""
config.py - Classroom Rewards settings.
Every tunable lives here once; the SQL store, the offline cache and the API
all read the same values.
"""

import os
from dotenv import load_dotenv

load_dotenv()

APP_DIR = os.path.dirname(os.path.abspath(__file__))


def _positive_int(name, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


# ---- Accounting ----
REWARD_THRESHOLD = _positive_int("REWARD_THRESHOLD", 10)
HISTORY_LIMIT = _positive_int("HISTORY_LIMIT", 64)
MAX_DELTA = _positive_int("MAX_DELTA", 100000)

DEFAULT_REASON = "Point adjustment"
CREATED_REASON = "Student created"
MAX_NAME_LENGTH = 200

# ---- Storage ----
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///classroom_rewards.db")
LOCAL_CACHE_PATH = os.getenv("LOCAL_CACHE_PATH", os.path.join(APP_DIR, "data", "students.json"))

# ---- Web ----
SECRET_KEY = os.getenv("FLASK_SECRET_KEY", "dev-secret-change-me")
LOG_DIR = os.getenv("LOG_DIR", os.path.join(APP_DIR, "logs"))
LANGUAGES = {'en': 'English', 'es': 'Español'}

# ---- Alerts ----
MAIL_SERVER = os.getenv('MAIL_SERVER', 'smtp.gmail.com')
MAIL_PORT = int(os.getenv('MAIL_PORT', 587))
MAIL_USERNAME = os.getenv('MAIL_USERNAME')
MAIL_PASSWORD = os.getenv('MAIL_PASSWORD')
ADMIN_EMAIL = os.getenv('ADMIN_EMAIL')
