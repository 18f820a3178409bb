"""
Playze Map Tools - interactive map widget with measurement and marker tools
"""

__version__ = "0.1.0"
