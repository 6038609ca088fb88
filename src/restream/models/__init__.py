"""Database models for the restream service."""
from .base import BaseModel
from .channel import Channel

__all__ = ["BaseModel", "Channel"]
