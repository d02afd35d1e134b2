"""
Wager tracking with an authoritative server and an offline-capable local replica.
"""

__version__ = "1.0.0"
