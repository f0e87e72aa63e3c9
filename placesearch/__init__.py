"""
Place Search
Index synchronization and hybrid keyword/vector retrieval for marketplace places.
"""

__version__ = "0.1.0"
