"""
Top-level package for the RoadAmico API.

All functionality lives in submodules under ``app``; import the ASGI
application as ``roadamico_api.app.main:app``.
"""

__all__ = []
