"""Shared test fixtures."""

from collections.abc import Iterator

import pytest

from publisher.config import Settings, get_settings


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Iterator[None]:
    """Reset the cached settings singleton between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a fake repository and a temporary cache."""
    return Settings(
        gh_token="test-token",
        repo_owner="owner",
        repo_name="repo",
        branch="main",
        storage={
            "json_dir": "static/60s",
            "image_dir": "static/images",
            "local_data_dir": str(tmp_path / "data"),
        },
    )


@pytest.fixture
def raw_digest() -> dict:
    """Upstream ``data`` object as returned by the 60s API."""
    return {
        "date": "2024-01-01",
        "news": ["First headline", "Second headline"],
        "tip": "Keep going.",
        "lunar_date": "冬月二十",
        "cover": "https://upstream.example/cover.png",
        "image": "https://upstream.example/2024-01-01.png",
        "link": "https://upstream.example/article",
    }
