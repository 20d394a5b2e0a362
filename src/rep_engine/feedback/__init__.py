"""
Spoken feedback for workout sessions.
"""
