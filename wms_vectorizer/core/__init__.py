"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Named constants, defaults, classification keywords
- exceptions: Custom exception hierarchy
"""
