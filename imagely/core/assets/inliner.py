"""
Inliner
=======

Rewrite external script/stylesheet tags into inline tags and inject a JSON
data payload as ``window.data``.
"""

from typing import Any, Iterable, List, Optional, Tuple, Union
from pathlib import Path
import json
import re

import aiofiles

from imagely.config.logging import get_logger
from imagely.core.exceptions import ImagelyError, PayloadParseError
from imagely.models.schemas import FetchedAsset

logger = get_logger(__name__)


HEAD_TAG_PATTERN = re.compile(r"<head\b[^>]*>", re.IGNORECASE)


def serialize_payload(data: Any) -> str:
    """
    Serialize payload data as compact JSON safe to embed in a script tag.

    ``</`` is written as ``<\\/`` so string values cannot close the
    surrounding script element; both forms decode to the same JSON.
    """
    text = json.dumps(data, separators=(",", ":"), ensure_ascii=False)
    return text.replace("</", "<\\/")


def parse_payload(text: str, origin: str = "<payload>") -> str:
    """Parse JSON text and return its compact serialization."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise PayloadParseError(f'Invalid JSON data in "{origin}": {e}') from e
    return serialize_payload(data)


async def load_json_payload(path: Union[str, Path]) -> str:
    """
    Read a JSON payload file and return its compact serialization.

    Raises:
        PayloadParseError: If the file cannot be read or is not valid JSON
    """
    try:
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            text = await f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise PayloadParseError(f'Error reading JSON data "{path}": {e}') from e
    return parse_payload(text, str(path))


def payload_script(payload_json: str) -> str:
    """Script element assigning the payload to window.data."""
    return f"<script>window.data = {payload_json}</script>"


def payload_position(html_text: str) -> int:
    """Offset just past the first opening <head> tag, or 0 when there is none."""
    match = HEAD_TAG_PATTERN.search(html_text)
    return match.end() if match is not None else 0


def inject_payload(html_text: str, payload_json: str) -> str:
    """Insert the window.data script after the opening <head> tag, or at the start."""
    position = payload_position(html_text)
    return html_text[:position] + payload_script(payload_json) + html_text[position:]


Splice = Tuple[int, int, str]


def locate_asset_tags(html_text: str, fetched_assets: Iterable[FetchedAsset]) -> List[Splice]:
    """
    Find the (start, end, replacement) span of each asset's originating tag.

    Assets must be in document order. Each asset consumes the next
    occurrence of its tag after the previous one, so duplicate tags map 1:1
    onto their fetched content.
    """
    splices: List[Splice] = []
    cursor = 0

    for asset in fetched_assets:
        tag = asset.reference.original_tag
        index = html_text.find(tag, cursor)
        if index == -1:
            raise ImagelyError(f"Asset tag not found in document: {tag}")
        cursor = index + len(tag)
        splices.append((index, cursor, asset.inline_tag))

    return splices


def apply_splices(html_text: str, splices: List[Splice]) -> str:
    """Apply non-overlapping splices sorted by start offset. Substitution is literal."""
    parts: List[str] = []
    cursor = 0

    for start, end, replacement in splices:
        parts.append(html_text[cursor:start])
        parts.append(replacement)
        cursor = end

    parts.append(html_text[cursor:])
    return "".join(parts)


def inline_assets(html_text: str, fetched_assets: Iterable[FetchedAsset]) -> str:
    """Replace each asset's originating tag with its inline equivalent."""
    return apply_splices(html_text, locate_asset_tags(html_text, fetched_assets))


def inline(
    html_text: str,
    fetched_assets: Iterable[FetchedAsset],
    json_payload: Optional[str] = None,
) -> str:
    """
    Produce the final HTML for a render pass.

    Tag locations and the payload position are both taken from the original
    markup, so neither fetched content nor the payload is ever searched.

    Args:
        html_text: Original HTML markup
        fetched_assets: Fetched assets in document order
        json_payload: Compact JSON to expose as window.data

    Returns:
        HTML with external tags inlined and the payload injected
    """
    fetched_assets = list(fetched_assets)
    splices = locate_asset_tags(html_text, fetched_assets)

    if json_payload is not None:
        position = payload_position(html_text)
        for start, end, _ in splices:
            # never split a tag
            if start < position < end:
                position = start
        splices.append((position, position, payload_script(json_payload)))
        # at equal offsets the zero-width insertion sorts before the tag
        splices.sort(key=lambda splice: (splice[0], splice[1]))

    html = apply_splices(html_text, splices)

    logger.debug(
        "Inlined document",
        assets=len(fetched_assets),
        payload=json_payload is not None,
        html_length=len(html),
    )
    return html
