"""Board mechanics, the per-run coordinator and the in-memory run registry.

Nothing in this package touches the database or the request context.
"""
