"""Student project allocation and competitions aggregation."""

__version__ = "1.0.0"
