"""
Worksheet API modules.

Modules:
- worksheet_upload: Upload workflow endpoint
- worksheet_management: Listing, feeds, get, edit and delete
- worksheet_download: File streaming
- common: Shared dependencies and error translation
"""

__all__ = []
