"""
Core business logic package for Campus Transit.

The trip lifecycle engine, its storage adapters and models live here.
Lambda handlers in src/handlers/ are thin wrappers that call into transit/.
"""

__all__: list[str] = []
