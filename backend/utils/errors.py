# backend/utils/errors.py
from typing import Optional


class InventoryError(Exception):
    """Base for errors that map straight onto an HTTP response."""

    status_code = 400
    message = "Request could not be processed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)


# --- input validation ---

class MissingFieldsError(InventoryError):
    message = "Missing required fields"


class BranchRequiredError(InventoryError):
    message = 'Branch is required for "out", "return" and "transfer" transactions'


class TrackingIdRequiredError(InventoryError):
    message = "Item Tracking ID is required for transfer transactions"


class InvalidTransactionTypeError(InventoryError):
    def __init__(self, tx_type: str):
        super().__init__(f'Invalid transaction type "{tx_type}"')


# --- business rules ---

class InsufficientStockError(InventoryError):
    def __init__(self, available: int, requested: int):
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for this transaction (available {available}, requested {requested})"
        )


class DuplicateSerialError(InventoryError):
    def __init__(self, serial: str, item_name: Optional[str] = None):
        self.serial = serial
        self.item_name = item_name
        if item_name:
            msg = f"Serial number '{serial}' already exists on item '{item_name}'"
        elif serial:
            msg = f"Serial number '{serial}' already exists"
        else:
            # Raised from the unique index itself, the driver does not tell us which one
            msg = "A serial number in this request already exists on another item"
        super().__init__(msg)


class AlreadyConfirmedError(InventoryError):
    message = "This replacement has already been confirmed"


# --- not found ---

class ResourceNotFoundError(InventoryError):
    status_code = 404
    message = "Resource not found"


class ItemNotFoundError(ResourceNotFoundError):
    message = "Inventory item not found"


class OriginalTransferNotFoundError(ResourceNotFoundError):
    message = "Original transfer not found"


# --- infrastructure ---

class ConcurrentUpdateError(InventoryError):
    status_code = 409
    message = "The item was modified by another request, reload and try again"


class ExtractionError(InventoryError):
    status_code = 502
    message = "Failed to process invoice"
