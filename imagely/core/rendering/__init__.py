"""
Rendering Module
===============

Headless browser orchestration and output inspection.

Components:
- engine: Playwright browser lifecycle for a single render pass
- renderer: Render pass state machine (load, configure, capture)
- probe: Image dimension probing of rendered output
"""
