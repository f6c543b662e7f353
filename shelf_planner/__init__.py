"""Shelf layout allocation and reconciliation"""

__version__ = "0.1.0"
