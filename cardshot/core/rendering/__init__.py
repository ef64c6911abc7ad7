"""
Rendering Module
===============

HTML generation and PNG creation with browser automation.

Components:
- layouts: Card layouts rendered with Jinja2
- surface: Scoped Playwright browser and page lifecycle
- card_renderer: Screenshot capture and page inspection
"""
