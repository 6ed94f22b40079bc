"""Service de toma de inventario físico (existences théoriques par almacén)."""

__version__ = "1.0.0"
