"""
clinicslots - doctor availability and slot scheduling engine.
"""

__version__ = "0.1.0"
