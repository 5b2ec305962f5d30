"""HTTP boundary for the ChocAn backend."""

from chocan.api.app import create_app

__all__ = ["create_app"]
