from pathlib import Path
from dotenv import load_dotenv
import pytest

# Load environment variables for tests
load_dotenv(Path(__file__).resolve().parents[1] / '.env.test')


# Keep the admin settings client off the network unless a test opts in
@pytest.fixture(autouse=True)
def no_admin_settings_provider(monkeypatch):
    """Blank ADMIN_SETTINGS_URL so fee settings fall back to config defaults."""
    from app.core.config import settings

    monkeypatch.setattr(settings, "ADMIN_SETTINGS_URL", "")
    return settings
