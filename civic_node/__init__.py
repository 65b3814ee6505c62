"""
Civic Treasury Node package initializer

Keep this module lightweight. Do not import FastAPI or the runtime here,
so the runtime can be used (and tested) without the HTTP stack loaded.
"""

__all__ = []
