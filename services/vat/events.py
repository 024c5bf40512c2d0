"""Resolution of the address where an event takes place."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from core.logging import get_logger
from services.vat.types import Address, HasFields

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from services.vat.types import OrderItem

logger = get_logger(__name__)

PATH_SEPARATOR = "|"


@runtime_checkable
class AddressResolver(Protocol):
    """Finds the address of the event sold by an order item."""

    def resolve(self, order_item: OrderItem) -> Address | None:
        """Return the event address, or None if it cannot be determined."""
        ...


def parse_field_path(path: str) -> tuple[str, ...]:
    """Split a ``venue|address`` property path into field names."""
    return tuple(part.strip() for part in path.split(PATH_SEPARATOR) if part.strip())


def follow_field_path(root: HasFields, path: Sequence[str]) -> Address | None:
    """
    Walk entity references down to an address field.

    Every field but the last must reference another entity; the last one
    must hold an address.

    Args:
        root: Entity to start from.
        path: Field names to follow.

    Returns:
        The address, or None if any link is empty or has the wrong type.
    """
    if not path:
        return None

    current = root
    *references, address_field = path
    for name in references:
        value = current.get_field(name)
        if not value or not isinstance(value, HasFields):
            return None
        current = value

    address = current.get_field(address_field)
    if not isinstance(address, Address):
        return None
    return address


class FieldPathAddressResolver:
    """
    Resolves event addresses through a field path configured per product type.

    Example:
        >>> resolver = FieldPathAddressResolver({"conference": "venue|address"})
        >>> resolver.resolve(order_item)
        Address(country_code='AT', postal_code='1010')
    """

    def __init__(self, paths: Mapping[str, str | Sequence[str]] | None = None) -> None:
        """
        Initialize the resolver.

        Args:
            paths: Field path by product type, as a ``|`` separated string or
                a sequence of field names.
        """
        self._paths: dict[str, tuple[str, ...]] = {}
        for product_type, path in (paths or {}).items():
            fields = parse_field_path(path) if isinstance(path, str) else tuple(path)
            if fields:
                self._paths[product_type] = fields

    def path_for(self, product_type: str) -> tuple[str, ...] | None:
        """Return the field path configured for a product type."""
        return self._paths.get(product_type)

    def resolve(self, order_item: OrderItem) -> Address | None:
        """Return the event address of an order item's product, if any."""
        product = order_item.product
        if product is None:
            return None

        path = self.path_for(product.bundle)
        if path is None:
            logger.debug("No event address path configured", product_type=product.bundle)
            return None

        return follow_field_path(product, path)
