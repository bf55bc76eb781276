"""
Data Models
===========

Pydantic models for render requests, asset references and render outcomes.
"""
