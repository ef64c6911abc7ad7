"""
Test Suite
==========

Test suite matching the cardshot/ package structure.

Test Categories:
- unit: Unit tests for individual components
- integration: HTTP API tests against a fake browser
"""
