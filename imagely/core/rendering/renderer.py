"""
Renderer
========

Render pass orchestration. A pass obtains the final HTML (or a URL), drives
a headless engine through its lifecycle and probes the written output:

    IDLE -> ENGINE_STARTING -> PAGE_LOADING -> CONTENT_READY -> CAPTURING
         -> COMPLETED | FAILED

Failures never escape ``render``; they are returned as a RenderOutcome
error so success and failure share one completion channel.
"""

from typing import Any, Callable, List, Optional
from dataclasses import dataclass, field
from pathlib import Path

import aiofiles

from imagely.config.logging import get_logger
from imagely.config.settings import get_settings
from imagely.core.assets.fetcher import AssetFetcher
from imagely.core.assets.inliner import inline, load_json_payload
from imagely.core.assets.resolver import resolve
from imagely.core.exceptions import EngineError, ImagelyError
from imagely.core.rendering.engine import HeadlessEngine
from imagely.core.rendering.probe import probe_dimensions
from imagely.models.schemas import RenderOutcome, RenderRequest, RenderState

logger = get_logger(__name__)


EngineFactory = Callable[[float], HeadlessEngine]
FetcherFactory = Callable[[], AssetFetcher]


@dataclass
class RenderContext:
    """Per-pass state threaded through each render step."""

    request: RenderRequest
    html: Optional[str] = None
    engine: Optional[HeadlessEngine] = None
    state: RenderState = RenderState.IDLE
    history: List[RenderState] = field(default_factory=list)

    def transition(self, state: RenderState) -> None:
        self.history.append(self.state)
        self.state = state
        logger.debug("Render state", source=self.request.source, state=state.value)


class Renderer:
    """Drives render passes for URL and local file sources."""

    def __init__(
        self,
        engine_factory: EngineFactory = HeadlessEngine,
        fetcher_factory: FetcherFactory = AssetFetcher,
    ):
        self.settings = get_settings()
        self.logger: Any = logger.bind(component="renderer")  # structlog.BoundLoggerBase
        self.engine_factory = engine_factory
        self.fetcher_factory = fetcher_factory

    async def render(
        self,
        request: RenderRequest,
        html_text: Optional[str] = None,
        payload_json: Optional[str] = None,
    ) -> RenderOutcome:
        """
        Run one render pass.

        Args:
            request: Render request
            html_text: Pre-read source HTML (file mode); read from request.source when omitted
            payload_json: Compact JSON payload; overrides request.json_data_path

        Returns:
            RenderOutcome with probed dimensions or an error description
        """
        context = RenderContext(request=request)

        self.logger.info(
            "Rendering",
            source=request.source,
            destination=str(request.destination),
            width=request.width,
            height=request.height,
            scale=request.scale,
        )

        try:
            if not request.is_url:
                context.html = await self.prepare_html(request, html_text, payload_json)
            await self._run_engine(context)
        except (ImagelyError, OSError, UnicodeDecodeError) as e:
            context.transition(RenderState.FAILED)
            error = self._describe_error(request, e)
            self.logger.error("Render failed", source=request.source, error=error)
            return RenderOutcome.failed(request.destination, error)
        except Exception as e:
            context.transition(RenderState.FAILED)
            error = self._describe_error(request, EngineError(f"Unexpected render error: {e}"))
            self.logger.exception("Render failed unexpectedly", source=request.source)
            return RenderOutcome.failed(request.destination, error)

        context.transition(RenderState.COMPLETED)
        dimensions = probe_dimensions(request.destination)
        self.logger.info(
            "Render completed",
            destination=str(request.destination),
            width=dimensions.width,
            height=dimensions.height,
        )
        return RenderOutcome.completed(request.destination, dimensions)

    async def prepare_html(
        self,
        request: RenderRequest,
        html_text: Optional[str] = None,
        payload_json: Optional[str] = None,
    ) -> str:
        """Resolve, fetch and inline the source document's external assets."""
        if html_text is None:
            html_text = await read_html(request.source)

        if payload_json is None and request.json_data_path is not None:
            payload_json = await load_json_payload(request.json_data_path)

        base_dir = Path(request.source).parent
        references = resolve(html_text, base_dir, request.remote_assets)

        async with self.fetcher_factory() as fetcher:
            fetched = await fetcher.fetch_all(references, request.source)

        return inline(html_text, fetched, payload_json)

    async def _run_engine(self, context: RenderContext) -> None:
        """Drive the engine through load, configure and capture; always tear down."""
        request = context.request

        context.transition(RenderState.ENGINE_STARTING)
        engine = self.engine_factory(request.scale)
        context.engine = engine

        try:
            await engine.start()

            context.transition(RenderState.PAGE_LOADING)
            if request.is_url:
                await engine.open_url(request.source)
            else:
                await engine.set_content(context.html or "")

            context.transition(RenderState.CONTENT_READY)
            await self._configure_page(context)

            context.transition(RenderState.CAPTURING)
            await engine.render(request.destination, request.output_format)
        finally:
            await engine.close()

    async def _configure_page(self, context: RenderContext) -> None:
        """Apply viewport and background color."""
        request = context.request
        engine = context.engine
        assert engine is not None

        if request.has_viewport:
            width = request.width or self.settings.default_width
            height = request.height or self.settings.default_height
            await engine.set_viewport(width, height)

        if request.background_color:
            await engine.set_background(request.background_color)

    def _describe_error(self, request: RenderRequest, error: Exception) -> str:
        if request.is_url:
            return str(error)
        return f'Error rendering file "{request.source}": {error}'


async def read_html(path: str) -> str:
    """Read an HTML document as UTF-8 text."""
    async with aiofiles.open(path, "r", encoding="utf-8") as f:
        return await f.read()
