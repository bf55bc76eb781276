"""
Unit Tests for Inliner
======================

Tests for tag substitution, payload serialization and payload injection.
"""

from pathlib import Path

import pytest

from imagely.core.assets.inliner import (
    inject_payload,
    inline,
    inline_assets,
    load_json_payload,
    parse_payload,
    payload_script,
    serialize_payload,
)
from imagely.core.assets.resolver import resolve
from imagely.core.exceptions import ImagelyError, PayloadParseError
from imagely.models.schemas import AssetKind, AssetReference, FetchedAsset

from tests.utils.assertions import assert_no_external_tags


def fetched(tag: str, kind: AssetKind, content: str, location: str = "/tmp/asset") -> FetchedAsset:
    reference = AssetReference(original_tag=tag, kind=kind, location=location)
    return FetchedAsset(reference=reference, content=content)


class TestInlineAssets:
    """Test external tag replacement."""

    def test_script_replaced_with_inline_script(self):
        tag = '<script src="a.js"></script>'
        html = f"<head>{tag}</head>"

        result = inline_assets(html, [fetched(tag, AssetKind.SCRIPT, "var a = 1;")])

        assert result == "<head><script>var a = 1;</script></head>"

    def test_stylesheet_replaced_with_style(self):
        tag = '<link rel="stylesheet" href="a.css">'
        html = f"<head>{tag}</head>"

        result = inline_assets(html, [fetched(tag, AssetKind.STYLE, "p { margin: 0 }")])

        assert result == "<head><style>p { margin: 0 }</style></head>"

    def test_replacement_is_literal(self):
        tag = '<script src="a.js"></script>'
        content = r"s.replace(/x/, '$1 $& $$ \1 \g<0>')"

        result = inline_assets(tag, [fetched(tag, AssetKind.SCRIPT, content)])

        assert result == f"<script>{content}</script>"

    def test_duplicate_tags_map_one_to_one(self):
        tag = '<script src="a.js"></script>'
        html = f"{tag}<hr>{tag}"
        assets = [
            fetched(tag, AssetKind.SCRIPT, "first"),
            fetched(tag, AssetKind.SCRIPT, "second"),
        ]

        result = inline_assets(html, assets)

        assert result == "<script>first</script><hr><script>second</script>"

    def test_inserted_content_not_rescanned(self):
        tag_a = '<script src="a.js"></script>'
        tag_b = '<script src="b.js"></script>'
        html = f"{tag_a}{tag_b}"
        assets = [
            fetched(tag_a, AssetKind.SCRIPT, f"document.write('{tag_b}')"),
            fetched(tag_b, AssetKind.SCRIPT, "b"),
        ]

        result = inline_assets(html, assets)

        assert result == f"<script>document.write('{tag_b}')</script><script>b</script>"

    def test_unmatched_tags_left_untouched(self):
        remote = '<script src="https://cdn.example.com/d3.js"></script>'
        local = '<script src="app.js"></script>'
        html = remote + local

        result = inline_assets(html, [fetched(local, AssetKind.SCRIPT, "app")])

        assert result == remote + "<script>app</script>"

    def test_missing_tag_raises(self):
        with pytest.raises(ImagelyError, match="Asset tag not found"):
            inline_assets("<p></p>", [fetched('<script src="a.js"></script>', AssetKind.SCRIPT, "")])

    def test_no_assets_returns_input(self):
        assert inline_assets("<p>hi</p>", []) == "<p>hi</p>"

    def test_all_resolved_tags_inlined(self):
        html = (
            "<html><head>"
            '<link rel="stylesheet" href="a.css">'
            '<script src="b.js"></script>'
            '<link rel="stylesheet" href="c.css">'
            "</head><body></body></html>"
        )
        references = list(resolve(html, "/site"))
        assets = [FetchedAsset(reference=r, content="x") for r in references]

        result = inline(html, assets)

        assert_no_external_tags(result)
        assert result.count("<style>x</style>") == 2
        assert result.count("<script>x</script>") == 1
        assert list(resolve(result, "/site")) == []


class TestPayload:
    """Test JSON payload handling."""

    def test_serialize_is_compact(self):
        assert serialize_payload({"a": 1, "b": [1, 2]}) == '{"a":1,"b":[1,2]}'

    def test_serialize_keeps_unicode(self):
        assert serialize_payload({"name": "Zoë"}) == '{"name":"Zoë"}'

    def test_serialize_escapes_closing_tags(self):
        assert serialize_payload({"html": "</script>"}) == '{"html":"<\\/script>"}'

    def test_parse_payload_strips_whitespace(self):
        assert parse_payload('{\n  "a" : 1\n}\n') == '{"a":1}'

    def test_parse_payload_invalid(self):
        with pytest.raises(PayloadParseError, match="Invalid JSON"):
            parse_payload("{a: 1}", "data.json")

    def test_payload_script(self):
        assert payload_script('{"a":1}') == '<script>window.data = {"a":1}</script>'

    def test_inject_after_head(self):
        html = "<html><head><title>x</title></head></html>"

        result = inject_payload(html, '{"a":1}')

        assert result == '<html><head><script>window.data = {"a":1}</script><title>x</title></head></html>'

    def test_inject_after_head_with_attributes(self):
        html = '<HEAD lang="en"><title>x</title></HEAD>'

        result = inject_payload(html, "1")

        assert result.startswith('<HEAD lang="en"><script>window.data = 1</script>')

    def test_header_element_not_mistaken_for_head(self):
        html = "<body><header>x</header></body>"

        result = inject_payload(html, "1")

        assert result == "<script>window.data = 1</script><body><header>x</header></body>"

    def test_inject_without_head_prepends(self):
        assert inject_payload("<p>x</p>", "null") == "<script>window.data = null</script><p>x</p>"

    @pytest.mark.asyncio
    async def test_load_json_payload(self, sample_json: Path):
        payload = await load_json_payload(sample_json)
        assert payload == '{"a":1,"items":[1,2,3]}'

    @pytest.mark.asyncio
    async def test_load_json_payload_byte_identical_script(self, tmp_path: Path):
        path = tmp_path / "a.json"
        path.write_text('  {  "a" :\t1 }  ', encoding="utf-8")

        html = inline("<head></head>", [], await load_json_payload(path))

        assert html == '<head><script>window.data = {"a":1}</script></head>'

    @pytest.mark.asyncio
    async def test_load_json_payload_missing_file(self, tmp_path: Path):
        with pytest.raises(PayloadParseError, match="Error reading JSON data"):
            await load_json_payload(tmp_path / "missing.json")

    @pytest.mark.asyncio
    async def test_load_json_payload_malformed(self, tmp_path: Path):
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(PayloadParseError, match="Invalid JSON"):
            await load_json_payload(path)

    def test_inline_with_payload_and_assets(self):
        tag = '<script src="a.js"></script>'
        html = f"<head>{tag}</head>"

        result = inline(html, [fetched(tag, AssetKind.SCRIPT, "a()")], '{"k":"v"}')

        assert result == '<head><script>window.data = {"k":"v"}</script><script>a()</script></head>'

    def test_payload_position_ignores_inlined_content(self):
        tag = '<script src="a.js"></script>'
        html = f"{tag}<div>x</div>"

        result = inline(html, [fetched(tag, AssetKind.SCRIPT, 'var tpl = "<head></head>";')], '{"a":1}')

        assert result == (
            '<script>window.data = {"a":1}</script>'
            '<script>var tpl = "<head></head>";</script><div>x</div>'
        )

    def test_payload_after_head_precedes_inlined_head_assets(self):
        tag = '<link rel="stylesheet" href="a.css">'
        html = f"<html><head>{tag}</head><body></body></html>"

        result = inline(html, [fetched(tag, AssetKind.STYLE, "head { display: none }")], "1")

        assert result == (
            "<html><head><script>window.data = 1</script>"
            "<style>head { display: none }</style></head><body></body></html>"
        )
