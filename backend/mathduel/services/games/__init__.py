"""Game domain services: questions, rooms, timers and scoring.

This package holds the room state machine and the pure game logic it
drives, kept apart from Socket.IO and HTTP concerns.
"""
