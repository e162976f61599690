"""
Core package for shared utilities.

Configuration and structured logging used across the cache package.
"""
