"""
Core Business Logic
==================

Rendering pipeline for card images.

Modules:
- errors: Error kinds and exception hierarchy
- gate: Single-flight admission gate
- rendering: Templates, browser surfaces and screenshot capture
- packaging: Streaming zip archives
- pipeline: Job orchestration with scoped resource release
"""
