import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Settings are read once at import time, so the environment is fixed before any app import.
os.environ.setdefault("DATABASE_PATH", str(Path(tempfile.gettempdir()) / "jobseeker-tests.db"))
os.environ.setdefault("API_KEY", "test-admin-key")
os.environ["RATE_LIMIT_ENABLED"] = "0"
os.environ["LLM_ENABLED"] = "0"
os.environ["MAINTENANCE_ENABLED"] = "0"
os.environ.setdefault("PUBLIC_BASE_URL", "https://api.example.test")
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "rzp_test_secret")
os.environ.setdefault("GOOGLE_CLIENT_ID", "client-id.apps.googleusercontent.com")
os.environ.setdefault("GOOGLE_CLIENT_SECRET", "client-secret")

from app.db import store  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_database(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "jobseeker.db"))
    store.init_db()
    yield
