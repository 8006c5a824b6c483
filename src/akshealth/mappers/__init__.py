from .inventory_mapper import InventoryMapper

__all__ = ["InventoryMapper"]
