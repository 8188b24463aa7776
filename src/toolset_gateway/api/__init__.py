# API package
# FastAPI routes exposing toolset status over HTTP

from . import status

__all__ = ["status"]
