"""
imagely
=======

Render HTML files or URLs as JPG, PNG, GIF or PDF images through a headless
browser, with external scripts and stylesheets inlined and optional JSON
data preloaded into ``window.data``.

This package provides:
- Asset resolution, concurrent fetching and inlining
- Playwright render passes with viewport, zoom and background options
- Batch rendering of one template over many JSON records
- A command line interface
"""

__version__ = "1.0.0"
__author__ = "imagely developers"

from imagely.api import render, render_batch, render_sync  # noqa: E402

__all__ = ["render", "render_batch", "render_sync", "__version__"]
