"""
FastAPI REST Endpoints
======================

HTTP access to the rendering pipeline.

Endpoints:
- POST /render: Two cards as a zip archive
- POST /render/card: One templated card as PNG
- POST /render/html: Caller-supplied HTML as PNG
- POST /run: Title and heading of a live page
- GET /health: Liveness check
"""
