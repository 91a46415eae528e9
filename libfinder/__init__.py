"""
libfinder: book metadata and library holdings aggregated behind one API.
"""

__version__ = "0.1.0"
