"""
Core Module Package.

This package contains the core infrastructure components
that all other modules depend on.

Components:
- exceptions: Custom exception hierarchy
- constants: System-wide constants
"""
