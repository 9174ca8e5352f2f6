import pytest

from stock_insight.config import Settings

_SETTINGS_ENV = (
    "ANALYSIS_API_BASE_URL",
    "ANALYSIS_API_TIMEOUT",
    "LOG_LEVEL",
    "LOG_PLAIN",
    "DATA_DIR",
    "SENTIMENT_DISTRIBUTION_MODE",
    "SENTIMENT_RANDOM_SEED",
    "MEGA_CAP_SYMBOLS",
    "MEGA_CAP_DEFAULT_MARKET_CAP",
    "DEFAULT_MARKET_CAP",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every stock-insight setting from the environment."""
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def settings(clean_env, tmp_path):
    """Default Settings with the data dir under a temp path."""
    clean_env.setenv("DATA_DIR", str(tmp_path / "data"))
    return Settings()


@pytest.fixture
def news_batch():
    """Five raw articles whose titles carry no classifier keywords."""
    return [
        {"title": f"Company note {i}", "url": f"https://example.com/{i}", "source": "Wire"}
        for i in range(1, 6)
    ]
