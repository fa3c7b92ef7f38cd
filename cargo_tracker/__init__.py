"""
Cargo tracker: normalization, search, ETA alerts and validation of cargo
records held in a live document store.
"""

__version__ = "0.1.0"
