"""
fxsync - Exchange rate synchronization

Fetches currency exchange rates from external providers and reconciles them
against the locally known currency pairs.
"""

__version__ = "1.0.0"
