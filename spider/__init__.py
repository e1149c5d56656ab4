"""
spider

A breadth-first web crawler that builds an inverted keyword index.
"""

__version__ = "1.0.0"
__description__ = "A breadth-first web crawler that builds an inverted keyword index"
