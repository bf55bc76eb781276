"""
Public API
==========

Entry points for rendering an HTML file or URL to an image.

    outcome = await render("page.html", "page.png", width=800, height=600)
    if outcome.success:
        print(outcome.dimensions.width, outcome.dimensions.height)
"""

from typing import Any, Optional, Union
from pathlib import Path
import asyncio

from pydantic import ValidationError

from imagely.config.settings import get_settings
from imagely.core.batch.runner import BatchRunner, load_records
from imagely.core.exceptions import ConfigurationError
from imagely.core.rendering.renderer import Renderer
from imagely.models.schemas import BatchLog, RemoteAssetMode, RenderOutcome, RenderRequest


def build_request(
    source: str,
    destination: Union[str, Path],
    width: Optional[int] = None,
    height: Optional[int] = None,
    scale: Optional[float] = None,
    bg: Optional[str] = None,
    json: Optional[Union[str, Path]] = None,
    remote_assets: Optional[Union[str, RemoteAssetMode]] = None,
) -> RenderRequest:
    """
    Build a validated render request from caller options.

    Raises:
        ConfigurationError: If an option value is invalid
    """
    mode = remote_assets if remote_assets is not None else get_settings().remote_assets
    try:
        return RenderRequest(
            source=str(source),
            destination=Path(destination),
            width=width,
            height=height,
            scale=scale if scale is not None else 1.0,
            background_color=bg,
            json_data_path=Path(json) if json is not None else None,
            remote_assets=RemoteAssetMode(mode),
        )
    except (ValidationError, ValueError) as e:
        raise ConfigurationError(f"Invalid render options: {e}") from e


async def render(
    source: str,
    destination: Union[str, Path],
    renderer: Optional[Renderer] = None,
    **options: Any,
) -> RenderOutcome:
    """
    Render a source HTML file or URL as an image.

    Args:
        source: HTML filepath or URL
        destination: Destination filepath; supported extensions are JPG, PNG, GIF, PDF
        renderer: Renderer to use; a default one is created when omitted
        **options: width, height, scale, bg, json, remote_assets

    Returns:
        RenderOutcome with the rendered dimensions or an error description
    """
    try:
        request = build_request(source, destination, **options)
    except ConfigurationError as e:
        return RenderOutcome.failed(Path(destination), str(e))

    renderer = renderer or Renderer()
    return await renderer.render(request)


def render_sync(source: str, destination: Union[str, Path], **options: Any) -> RenderOutcome:
    """Blocking wrapper around render()."""
    return asyncio.run(render(source, destination, **options))


async def render_batch(
    source: str,
    destination: Union[str, Path],
    json: Union[str, Path],
    log_filepath: Optional[Union[str, Path]] = None,
    renderer: Optional[Renderer] = None,
    **options: Any,
) -> BatchLog:
    """
    Render source once per record of a JSON array file.

    Raises:
        ConfigurationError: If options are invalid or the source is a URL
        PayloadParseError: If the records file is unreadable or malformed
        OSError: If the source HTML cannot be read
    """
    request = build_request(source, destination, **options)
    records = await load_records(json)
    runner = BatchRunner(renderer)
    return await runner.run(request, records, log_filepath)
