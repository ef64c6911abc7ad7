"""
Data Models
===========

Pydantic models for card specifications, render jobs and API payloads.
"""
