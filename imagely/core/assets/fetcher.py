"""
Asset Fetcher
=============

Concurrent retrieval of external script and stylesheet content from local
disk (aiofiles) or over HTTP (aiohttp).
"""

from typing import Any, Iterable, List, Optional
import asyncio

import aiofiles
import aiohttp

from imagely.config.logging import get_logger
from imagely.config.settings import get_settings
from imagely.core.exceptions import AssetFetchError
from imagely.models.schemas import AssetReference, FetchedAsset

logger = get_logger(__name__)


class AssetFetcher:
    """Fetches the content of asset references concurrently."""

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: Optional[float] = None,
    ):
        self.settings = get_settings()
        self.logger: Any = logger.bind(component="asset_fetcher")  # structlog.BoundLoggerBase
        self._session = session
        self._own_session = session is None
        self.timeout = timeout if timeout is not None else self.settings.fetch_timeout

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            # total=None keeps requests unbounded unless a timeout is configured
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._own_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this fetcher created it."""
        if self._own_session and self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "AssetFetcher":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def fetch_remote(self, url: str) -> str:
        """Fetch a remote asset body as text."""
        session = await self._get_session()
        async with session.get(url) as response:
            if response.status >= 400:
                raise AssetFetchError(f"HTTP {response.status} fetching {url}")
            return await response.text()

    async def fetch_local(self, path: str) -> str:
        """Read a local asset as UTF-8 text."""
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            return await f.read()

    async def fetch(self, reference: AssetReference) -> FetchedAsset:
        """Fetch a single reference."""
        if reference.is_remote:
            content = await self.fetch_remote(reference.location)
        else:
            content = await self.fetch_local(reference.location)

        self.logger.debug(
            "Fetched asset",
            location=reference.location,
            kind=reference.kind.value,
            size=len(content),
        )
        return FetchedAsset(reference=reference, content=content)

    async def fetch_all(
        self, references: Iterable[AssetReference], source: str
    ) -> List[FetchedAsset]:
        """
        Fetch every reference concurrently and wait for all of them to settle.

        Args:
            references: Asset references in document order
            source: Source document the references were found in

        Returns:
            Fetched assets in the same order as the references

        Raises:
            AssetFetchError: If any fetch fails; no partial result is returned
        """
        references = list(references)
        if not references:
            return []

        self.logger.info("Fetching assets", source=source, count=len(references))

        results = await asyncio.gather(
            *(self.fetch(reference) for reference in references), return_exceptions=True
        )

        failures = [
            (reference, result)
            for reference, result in zip(references, results)
            if isinstance(result, BaseException)
        ]
        if failures:
            reference, error = failures[0]
            self.logger.error(
                "Asset fetch failed",
                source=source,
                location=reference.location,
                failed=len(failures),
                error=str(error),
            )
            raise AssetFetchError(
                f'Error fetching assets for "{source}": {reference.location}: {error}'
            ) from error

        return [result for result in results if isinstance(result, FetchedAsset)]


async def fetch_all(
    references: Iterable[AssetReference],
    source: str,
    session: Optional[aiohttp.ClientSession] = None,
) -> List[FetchedAsset]:
    """Fetch all references with a short-lived fetcher."""
    async with AssetFetcher(session=session) as fetcher:
        return await fetcher.fetch_all(references, source)
