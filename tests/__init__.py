"""
Test Suite
==========

Test suite matching the imagely/ package structure.

Test Categories:
- unit: Unit tests for individual components
- integration: Render pipeline tests across components
"""
