"""
Configuration Management
=======================

Environment-based configuration using Pydantic Settings.

Components:
- settings: Application, server and browser settings
- logging: Structured logging configuration
"""
