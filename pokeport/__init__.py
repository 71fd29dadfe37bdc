"""PokePort — Pokemon card scanning and valuation."""

__version__ = "0.1.0"
