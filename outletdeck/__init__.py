"""OutletDeck – order entry and reporting for a small restaurant chain."""

__version__ = "0.1.0"
