"""
Core infrastructure for the Vibe Walks backend: errors, logging, storage and
dependency wiring.
"""
