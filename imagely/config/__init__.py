"""
Configuration Management
=======================

Environment-based configuration using Pydantic Settings.

Components:
- settings: Rendering, engine and batch settings
- logging: Structured logging configuration
"""
