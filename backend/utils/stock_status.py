# backend/utils/stock_status.py
from models.inventory import StockStatus


def derive_status(quantity: int, min_stock: int) -> str:
    """Stock status as a pure function of quantity and the minimum level.

    0 -> out-of-stock, 1..min_stock -> low-stock, anything above -> in-stock.
    """
    quantity = quantity or 0
    if quantity <= 0:
        return StockStatus.OUT_OF_STOCK.value
    if quantity <= (min_stock or 0):
        return StockStatus.LOW_STOCK.value
    return StockStatus.IN_STOCK.value
