"""
Services built on the moderation utilities.

Provides:
- comments: Comment lifecycle controller
- admin: Administrator operations
"""

from commentguard.services.comments import (
    CommentService,
    CommentStatus,
    ItemType,
    SortOrder,
)
from commentguard.services.admin import AdminService

__all__ = [
    "CommentService",
    "CommentStatus",
    "ItemType",
    "SortOrder",
    "AdminService",
]
