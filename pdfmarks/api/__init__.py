"""
PDF Bookmark Editor API

FastAPI-based REST API for bookmark editing sessions.
"""

from .bookmark_api import BookmarkEditorAPI, create_app

__all__ = ["BookmarkEditorAPI", "create_app"]
