"""
Cache package.

Redis-backed caching: storage key derivation, payload serialization,
lifecycle events, the store capability and the cache engine.
"""
