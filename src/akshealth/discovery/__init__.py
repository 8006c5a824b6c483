from .inventory_builder import InventoryBuilder

__all__ = ["InventoryBuilder"]
