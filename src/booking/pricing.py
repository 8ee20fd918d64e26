"""
Price and duration aggregation for a booking cart.

Each cart line adds up four contributions: the service base, the vehicle
size surcharge, the formula surcharge and the selected add-ons. References
that no longer resolve (deleted service, unknown size, formula or add-on)
contribute nothing, so a stale cart still yields a usable quote.

Usage:
    quote = compute_quote(
        [CartLine(service_id="full-detail", vehicle_size_id="medium", formula_id="confort")],
        catalog=get_services(shop_id),
        vehicle_size_catalog=get_vehicle_sizes(shop_id),
    )
    quote.total_price, quote.total_duration_minutes
"""

import logging
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from src.schemas.booking_schema import AddOnCharge, BookingQuote, CartLine, LineBreakdown
from src.schemas.catalog_schema import ServiceCatalogItem, VehicleSize
from src.utils import format_duration, format_price

logger = logging.getLogger(__name__)

CartInput = Union[CartLine, Mapping[str, Any]]
CatalogInput = Union[Mapping[str, ServiceCatalogItem], Iterable[ServiceCatalogItem]]

_ZERO = Decimal("0")


class MalformedCartLineError(ValueError):
    """Raised when a cart line is structurally invalid (e.g. no service_id)."""


def compute_quote(
    cart_lines: Sequence[CartInput],
    catalog: CatalogInput,
    vehicle_size_catalog: Optional[Iterable[VehicleSize]] = None,
) -> BookingQuote:
    """
    Compute total price, total duration and line breakdown of a cart.

    Args:
        cart_lines: Selected lines, as CartLine or plain mappings.
        catalog: The shop's services, as a sequence or a mapping by id.
        vehicle_size_catalog: The shop's vehicle sizes. When given, a size id
            missing from it resolves to no surcharge.

    Returns:
        The quote. An empty cart yields a zero quote.

    Raises:
        MalformedCartLineError: If a line cannot be read as a CartLine.
    """
    lines = [_coerce_line(raw, index) for index, raw in enumerate(cart_lines)]
    if not lines:
        return BookingQuote.empty()

    services = _index_catalog(catalog)
    known_sizes = (
        {size.id for size in vehicle_size_catalog}
        if vehicle_size_catalog is not None
        else None
    )

    breakdown: list[LineBreakdown] = []
    for line in lines:
        service = services.get(line.service_id)
        if service is None:
            logger.warning("Cart line skipped: service %r not in catalog", line.service_id)
            continue
        breakdown.append(_price_line(line, service, known_sizes))

    total_price = sum((entry.total_price for entry in breakdown), _ZERO)
    total_duration = sum(entry.total_duration for entry in breakdown)
    logger.debug(
        "Quote computed: %d line(s), price=%s, duration=%d min",
        len(breakdown), total_price, total_duration,
    )
    return BookingQuote(
        total_price=total_price,
        total_duration_minutes=total_duration,
        breakdown=tuple(breakdown),
    )


def _coerce_line(raw: CartInput, index: int) -> CartLine:
    if isinstance(raw, CartLine):
        return raw
    if not isinstance(raw, Mapping):
        raise MalformedCartLineError(
            f"Cart line {index} must be a CartLine or a mapping, got {type(raw).__name__}"
        )
    try:
        return CartLine.model_validate(raw)
    except ValidationError as exc:
        raise MalformedCartLineError(f"Cart line {index} is malformed: {exc}") from exc


def _index_catalog(catalog: CatalogInput) -> Mapping[str, ServiceCatalogItem]:
    if isinstance(catalog, Mapping):
        return catalog
    return {service.id: service for service in catalog}


def _price_line(
    line: CartLine,
    service: ServiceCatalogItem,
    known_sizes: Optional[set[str]],
) -> LineBreakdown:
    size_id = line.vehicle_size_id
    if size_id is not None and known_sizes is not None and size_id not in known_sizes:
        logger.debug("Unknown vehicle size %r for service %r", size_id, service.id)
        size_id = None
    variation = service.size_variation(size_id)

    formula = service.formula(line.formula_id)
    if line.formula_id is not None and formula is None:
        logger.debug("Unknown formula %r for service %r", line.formula_id, service.id)

    # Catalog order keeps the breakdown stable whatever the selection order.
    add_ons = tuple(
        AddOnCharge(id=a.id, name=a.name, price=a.price, duration=a.duration)
        for a in service.add_ons
        if a.id in line.add_on_ids
    )
    unknown = line.add_on_ids - {a.id for a in add_ons}
    if unknown:
        logger.debug("Ignoring unknown add-on(s) %s for service %r", sorted(unknown), service.id)

    return LineBreakdown(
        service_id=service.id,
        service_name=service.name,
        vehicle_size_id=size_id,
        base_price=service.base_price,
        base_duration=service.base_duration_minutes,
        size_price=variation.price if variation else _ZERO,
        size_duration=variation.duration if variation else 0,
        formula_id=formula.id if formula else None,
        formula_name=formula.name if formula else None,
        formula_price=formula.additional_price if formula else _ZERO,
        formula_duration=formula.additional_duration if formula else 0,
        add_ons=add_ons,
    )


def format_quote_summary(quote: BookingQuote, currency: str = "EUR") -> str:
    """Generate read-back text of a quote for the confirmation step."""
    if quote.is_empty:
        return "No service selected."

    lines = []
    for entry in quote.breakdown:
        label = entry.service_name or entry.service_id
        if entry.formula_name:
            label = f"{label} ({entry.formula_name})"
        lines.append(
            f"  {label}: {format_price(entry.total_price, currency)}, "
            f"{format_duration(entry.total_duration)}"
        )
        for add_on in entry.add_ons:
            lines.append(f"    + {add_on.name or add_on.id}: {format_price(add_on.price, currency)}")
    lines.append(
        f"Total: {format_price(quote.total_price, currency)}, "
        f"{format_duration(quote.total_duration_minutes)}"
    )
    return "\n".join(lines)
