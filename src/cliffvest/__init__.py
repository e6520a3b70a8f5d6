"""
cliffvest - token reservation and cliff-plus-linear vesting engine.
"""

__version__ = "0.1.0"
