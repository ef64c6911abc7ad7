"""
Test Configuration
==================

Pytest fixtures shared by unit and integration tests: test settings, a fake
Playwright driver patched into the surface manager, and a FastAPI client.
"""

from typing import Generator
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from cardshot.api.main import create_app
from cardshot.config.settings import Settings
from cardshot.core.pipeline import RenderPipeline
from cardshot.models.schemas import CardSpec, CardVariant

from tests.utils.mocks import FakePlaywrightDriver


@pytest.fixture
def test_settings() -> Settings:
    """Test settings: no settle delay, short timeouts."""
    return Settings(
        environment="testing",
        debug=True,
        settle_delay_ms=0,
        launch_timeout=5.0,
        navigation_timeout=2000,
        log_level="DEBUG",
    )


@pytest.fixture
def fake_playwright() -> Generator[FakePlaywrightDriver, None, None]:
    """Fake Playwright driver patched over the real one."""
    driver = FakePlaywrightDriver()
    with patch("cardshot.core.rendering.surface.async_playwright", driver):
        yield driver


@pytest.fixture
def pipeline(test_settings: Settings, fake_playwright: FakePlaywrightDriver) -> RenderPipeline:
    """Render pipeline running against the fake driver."""
    return RenderPipeline(settings=test_settings)


@pytest.fixture
def client(
    test_settings: Settings, pipeline: RenderPipeline
) -> Generator[TestClient, None, None]:
    """FastAPI test client."""
    app = create_app(test_settings, pipeline=pipeline)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def chips_card() -> CardSpec:
    return CardSpec(title="Launch week", subtitle="Five days of releases", variant=CardVariant.CHIPS)


@pytest.fixture
def bullets_card() -> CardSpec:
    return CardSpec(title="Launch week", subtitle="What shipped", variant=CardVariant.BULLETS)
