"""Persistence collaborators."""

from hotelops.backends.base import HotelBackend

__all__ = ["HotelBackend"]
