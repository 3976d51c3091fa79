from .inventory import InventoryItem, InventoryLot, StockMovement
from .recipes import Recipe, RecipeIngredient
from .brewing import Vessel, BrewBatch, BrewIngredientConsumption, FermentationLogEntry, BatchMeasurementEntry, QualityCheck
from .purchasing import Supplier, PurchaseOrder, PurchaseOrderLine
from .sales import Customer, Order, OrderLine
from .packaging import PackagingRun, FinishedGoodsStock

__all__ = [
    'InventoryItem', 'InventoryLot', 'StockMovement',
    'Recipe', 'RecipeIngredient',
    'Vessel', 'BrewBatch', 'BrewIngredientConsumption', 'FermentationLogEntry', 'BatchMeasurementEntry', 'QualityCheck',
    'Supplier', 'PurchaseOrder', 'PurchaseOrderLine',
    'Customer', 'Order', 'OrderLine',
    'PackagingRun', 'FinishedGoodsStock',
]
