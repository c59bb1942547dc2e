"""Game domain services: color math, the color wheel, rooms and the coordinator.

This package contains pure domain logic that should be imported by
HTTP routes and socket handlers, keeping transport concerns separated
from core game mechanics.
"""
