"""
talentflow - client session guard and display preference core.
"""

__version__ = "0.1.0"
