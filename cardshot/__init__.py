"""
Card Render Service
===================

HTTP service that turns a title, a subtitle and per-card colors into PNG
cards by templating HTML, rendering it in headless Chromium and capturing
a screenshot. Multiple cards are delivered as a streamed zip archive.

This package provides:
- Jinja2 card layouts with mandatory escaping of free text
- Scoped Playwright browser lifecycle with bounded launch and navigation
- Single-flight gate rejecting overlapping render jobs
- Streaming zip packaging of rendered cards
- FastAPI endpoints for HTTP access
"""

__version__ = "1.0.0"
__author__ = "Card Render Service Team"
