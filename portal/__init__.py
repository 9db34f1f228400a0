# portal/__init__.py
"""Backend B2B objednávkového portálu (objednávky, statistiky, exporty)."""

__version__ = "1.0.0"
