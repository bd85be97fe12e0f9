"""API middleware components"""
from pdfmarks.api.middleware.authentication import check_api_key, require_api_key

__all__ = ["check_api_key", "require_api_key"]
