"""Check IFC building models against IDS information requirements."""

__version__ = "0.1.0"
