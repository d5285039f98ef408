"""CertiCraft - event certificate issuing and delivery service"""

__version__ = "1.0.0"
