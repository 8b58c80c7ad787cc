"""
Core module - Pure domain logic with no external dependencies.

This module contains:
- domain/: Entities, enums, metadata codec and status policy
- ports/: Abstract interfaces that adapters must implement
- exceptions: Centralized exception hierarchy
- constants: Application-wide constants and defaults
"""
