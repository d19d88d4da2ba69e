"""Embedding provider implementations.

Provider modules import their SDKs at module level, so they are imported
lazily by :func:`sqldocs.main.build_embedding_provider` rather than here.
"""
