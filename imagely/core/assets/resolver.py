"""
Asset Resolver
==============

Find external script and stylesheet references in HTML markup.

Matching is regex based rather than a structural HTML parse: only
``<script ... src="...">...</script>`` and ``<link ... rel="stylesheet"
... href="...">`` occurrences are recognised, case-insensitively. A script
body may not contain ``<``, so an unclosed script tag is left untouched
instead of swallowing markup up to a later ``</script>``.
"""

from typing import Iterator, Optional, Union
from pathlib import Path
import os
import re

from imagely.config.logging import get_logger
from imagely.models.schemas import AssetKind, AssetReference, RemoteAssetMode, is_url

logger = get_logger(__name__)


EXTERNAL_TAG_PATTERN = re.compile(
    r"(?P<script><script\b[^>]*?\bsrc=(?P<quote>[\"'])(?P<src>[^>]*?)(?P=quote)[^>]*>[^<]*</script\s*>)"
    r"|(?P<link><link\b[^>]*>)",
    re.IGNORECASE | re.DOTALL,
)
STYLESHEET_REL_PATTERN = re.compile(r"\brel=([\"'])\s*stylesheet\s*\1", re.IGNORECASE)
HREF_PATTERN = re.compile(r"\bhref=([\"'])(.*?)\1", re.IGNORECASE | re.DOTALL)


def resolve_location(location: str, base_dir: Union[str, Path]) -> str:
    """Resolve a tag location to a URL or an absolute local path."""
    if is_url(location):
        return location
    return os.path.abspath(os.path.join(os.fspath(base_dir), location))


def _match_reference(match: "re.Match[str]", base_dir: Union[str, Path]) -> Optional[AssetReference]:
    if match.group("script"):
        location = match.group("src")
        if not location:
            return None
        return AssetReference(
            original_tag=match.group("script"),
            kind=AssetKind.SCRIPT,
            location=resolve_location(location, base_dir),
        )

    tag = match.group("link")
    if not STYLESHEET_REL_PATTERN.search(tag):
        return None
    href = HREF_PATTERN.search(tag)
    if href is None or not href.group(2):
        return None
    return AssetReference(
        original_tag=tag,
        kind=AssetKind.STYLE,
        location=resolve_location(href.group(2), base_dir),
    )


def resolve(
    html_text: str,
    base_dir: Union[str, Path],
    remote_assets: RemoteAssetMode = RemoteAssetMode.FETCH,
) -> Iterator[AssetReference]:
    """
    Yield external asset references in document order.

    Duplicate tags are yielded once per occurrence so that every tag keeps
    its own fetched content. Remote references are dropped when
    ``remote_assets`` is SKIP, leaving their tags untouched.

    Args:
        html_text: HTML markup to scan
        base_dir: Directory that relative locations are resolved against
        remote_assets: Remote asset handling mode

    Yields:
        AssetReference for each matched tag
    """
    for match in EXTERNAL_TAG_PATTERN.finditer(html_text):
        reference = _match_reference(match, base_dir)
        if reference is None:
            continue
        if reference.is_remote and remote_assets == RemoteAssetMode.SKIP:
            logger.debug("Skipping remote asset", location=reference.location)
            continue
        yield reference
