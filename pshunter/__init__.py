"""PS Hunter - regional PlayStation Store price comparison."""

__version__ = "0.1.0"
