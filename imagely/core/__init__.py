"""
Core Business Logic
==================

Asset inlining, headless rendering and batch processing.
"""
