"""Local-first talent and project catalog with cloud push sync"""

__version__ = "1.0.0"
