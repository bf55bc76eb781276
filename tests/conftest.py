"""
Test Configuration
==================

Pytest configuration with fixtures for all test types.
Provides testing settings, sample documents with local assets, and fake
engine/fetcher factories.
"""

import os

os.environ.setdefault("IMAGELY_ENVIRONMENT", "testing")

import json
from pathlib import Path
from typing import Generator

import pytest

from imagely.config.settings import Settings, reload_settings
from imagely.core.rendering.renderer import Renderer
from tests.utils.mocks import FakeEngineFactory, FakeFetcherFactory


SAMPLE_HTML = """<!DOCTYPE html>
<html>
<head>
<title>Sample</title>
<link rel="stylesheet" href="css/style.css">
<script type="text/javascript" src="js/app.js"></script>
</head>
<body>
<div id="chart"></div>
<script>render(window.data);</script>
</body>
</html>
"""


@pytest.fixture
def test_settings() -> Generator[Settings, None, None]:
    """Fresh testing settings, reloaded from the environment."""
    settings = reload_settings()
    yield settings
    reload_settings()


@pytest.fixture
def sample_site(tmp_path: Path) -> Path:
    """A local HTML document referencing one stylesheet and one script."""
    (tmp_path / "css").mkdir()
    (tmp_path / "js").mkdir()
    (tmp_path / "css" / "style.css").write_text("body { color: red; }", encoding="utf-8")
    (tmp_path / "js" / "app.js").write_text(
        "function render(data) { return data; }", encoding="utf-8"
    )
    html_path = tmp_path / "index.html"
    html_path.write_text(SAMPLE_HTML, encoding="utf-8")
    return html_path


@pytest.fixture
def sample_json(tmp_path: Path) -> Path:
    """A formatted JSON payload file."""
    path = tmp_path / "data.json"
    path.write_text('{\n    "a": 1,\n    "items": [1, 2, 3]\n}\n', encoding="utf-8")
    return path


@pytest.fixture
def batch_json(tmp_path: Path) -> Path:
    """A JSON array of three batch records."""
    path = tmp_path / "records.json"
    records = [
        {"filename": "first", "value": 1},
        {"value": 2},
        {"filename": "third", "value": 3},
    ]
    path.write_text(json.dumps(records), encoding="utf-8")
    return path


@pytest.fixture
def engine_factory() -> FakeEngineFactory:
    return FakeEngineFactory()


@pytest.fixture
def fetcher_factory() -> FakeFetcherFactory:
    return FakeFetcherFactory()


@pytest.fixture
def renderer(engine_factory: FakeEngineFactory) -> Renderer:
    """Renderer with a fake engine and the real asset fetcher."""
    return Renderer(engine_factory=engine_factory)
