"""
Groups module - Group class enrollment and capacity.
"""

from app.modules.groups.models import GroupClass
from app.modules.groups.repository import GroupClassRepository

__all__ = ["GroupClass", "GroupClassRepository"]
