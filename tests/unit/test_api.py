"""
Unit Tests for Public API
=========================

Tests for option validation and the render entry points.
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from imagely.api import build_request, render, render_batch, render_sync
from imagely.core.exceptions import ConfigurationError
from imagely.core.rendering.renderer import Renderer
from imagely.models.schemas import RemoteAssetMode

from tests.utils.assertions import assert_failed_outcome, assert_successful_outcome
from tests.utils.mocks import FakeEngineFactory


class TestBuildRequest:
    """Test request construction from caller options."""

    def test_defaults(self, test_settings):
        request = build_request("page.html", "page.png")

        assert request.scale == 1.0
        assert request.destination == Path("page.png")
        assert request.remote_assets == RemoteAssetMode.FETCH
        assert request.json_data_path is None

    def test_options_mapped(self):
        request = build_request(
            "page.html", "page.jpg", width=640, height=480, scale=2, bg="#000", json="data.json",
            remote_assets="skip",
        )

        assert (request.width, request.height, request.scale) == (640, 480, 2.0)
        assert request.background_color == "#000"
        assert request.json_data_path == Path("data.json")
        assert request.remote_assets == RemoteAssetMode.SKIP

    @pytest.mark.parametrize(
        "options",
        [
            {"width": -1},
            {"scale": 0},
            {"remote_assets": "maybe"},
        ],
    )
    def test_invalid_options(self, options):
        with pytest.raises(ConfigurationError, match="Invalid render options"):
            build_request("page.html", "page.png", **options)

    def test_unsupported_destination(self):
        with pytest.raises(ConfigurationError):
            build_request("page.html", "page.tiff")


class TestRender:
    """Test the render entry points."""

    @pytest.mark.asyncio
    async def test_render_file(self, sample_site: Path, tmp_path: Path):
        engines = FakeEngineFactory()

        outcome = await render(
            str(sample_site), tmp_path / "out.png", renderer=Renderer(engine_factory=engines), width=800
        )

        assert_successful_outcome(outcome, 800, 600)
        assert engines.last.called("set_viewport") == [(800, 600)]

    @pytest.mark.asyncio
    async def test_invalid_options_become_failed_outcome(self, tmp_path: Path):
        engines = FakeEngineFactory()

        outcome = await render(
            "page.html", tmp_path / "out.bmp", renderer=Renderer(engine_factory=engines)
        )

        assert_failed_outcome(outcome, "Invalid render options")
        assert engines.engines == []

    def test_render_sync(self, sample_site: Path, tmp_path: Path):
        engines = FakeEngineFactory()

        with patch("imagely.api.Renderer", lambda: Renderer(engine_factory=engines)):
            outcome = render_sync(str(sample_site), tmp_path / "out.gif")

        assert_successful_outcome(outcome, 800, 600)
        assert len(engines.engines) == 1

    @pytest.mark.asyncio
    async def test_render_batch(self, sample_site: Path, batch_json: Path, tmp_path: Path):
        log_path = tmp_path / "logs" / "batch.json"

        log = await render_batch(
            str(sample_site),
            tmp_path / "out" / "chart.png",
            batch_json,
            log_filepath=log_path,
            renderer=Renderer(engine_factory=FakeEngineFactory()),
        )

        assert len(log.success) == 3
        assert json.loads(log_path.read_text(encoding="utf-8"))["success"][0]["filename"] == "first"

    @pytest.mark.asyncio
    async def test_render_batch_rejects_url(self, batch_json: Path, tmp_path: Path):
        with pytest.raises(ConfigurationError):
            await render_batch(
                "https://example.com",
                tmp_path / "chart.png",
                batch_json,
                renderer=Renderer(engine_factory=FakeEngineFactory()),
            )
