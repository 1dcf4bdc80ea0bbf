"""
Reglas de estado de producto derivadas del stock.

Un producto pasa a "Agotado" cuando su existencia llega a 0 y recupera su
estado anterior (normalmente "Activo") cuando vuelve a tener existencia.
Todas las rutas que modifican stock (venta, cancelación, actualización
manual) usan ``derive_status`` en lugar de condicionales propios.
"""
from typing import Optional, Tuple


ACTIVE = "Activo"
INACTIVE = "Inactivo"
OUT_OF_STOCK = "Agotado"
CANCELLED = "Cancelado"


def derive_status(previous_status: Optional[str], quantity: int, restore_status: Optional[str] = ACTIVE) -> str:
    """
    Calcula el estado de un producto a partir de su estado previo y su stock.

    Args:
        previous_status: Estado actual almacenado del producto
        quantity: Stock resultante tras la operación
        restore_status: Estado a recuperar cuando un producto agotado vuelve a tener stock

    Returns:
        El nuevo estado del producto
    """
    if quantity <= 0:
        return OUT_OF_STOCK
    if previous_status == OUT_OF_STOCK:
        if restore_status and restore_status != OUT_OF_STOCK:
            return restore_status
        return ACTIVE
    return previous_status or ACTIVE


def next_status_fields(status: str, restock_status: str, quantity: int) -> Tuple[str, str]:
    """
    Returns ``(status, restock_status)`` after the stock became ``quantity``.

    ``restock_status`` remembers the status a product had right before it ran
    out, so a later restock can restore it.
    """
    new_status = derive_status(status, quantity, restock_status)
    if new_status == OUT_OF_STOCK and status != OUT_OF_STOCK:
        return new_status, status
    return new_status, restock_status
