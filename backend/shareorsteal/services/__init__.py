"""Game domain services: matchmaking, match lifecycle and the play gate.

This package contains the logic that socket handlers and HTTP routes call
into, keeping transport concerns separated from core game mechanics.
"""
