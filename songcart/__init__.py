"""Song cart and catalog service for the music quiz builder"""

__version__ = "1.0.0"
