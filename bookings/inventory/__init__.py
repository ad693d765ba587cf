"""Slot inventory collaborators."""

from .slot_inventory import InMemorySlotInventory, release_slot

__all__ = ["InMemorySlotInventory", "release_slot"]
