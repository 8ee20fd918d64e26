"""
Mock catalog store: services, formulas, add-ons and vehicle sizes per shop.

In production, this would read the shop's `services`, `formulas`, `add_ons`
and `shop_vehicle_sizes` tables from the hosted database and map rows to
catalog models.
"""

import logging
from decimal import Decimal
from typing import Optional

from src.schemas.catalog_schema import (
    AddOn,
    Formula,
    ServiceCatalogItem,
    SizeVariation,
    VehicleSize,
)

logger = logging.getLogger(__name__)

DEMO_SHOP_ID = "nomad-lab"


def _demo_vehicle_sizes() -> list[VehicleSize]:
    return [
        VehicleSize(id="small", name="Citadine/Compacte", order=1),
        VehicleSize(id="medium", name="Berline/SUV moyen", order=2),
        VehicleSize(id="large", name="SUV/4x4 grand format", order=3),
    ]


def _demo_services() -> list[ServiceCatalogItem]:
    return [
        ServiceCatalogItem(
            id="full-detail",
            name="Nettoyage complet",
            category_id="exterior",
            base_price=Decimal("50"),
            base_duration_minutes=60,
            vehicle_size_variations={
                "medium": SizeVariation(price=Decimal("10"), duration=10),
                "large": SizeVariation(price=Decimal("20"), duration=20),
            },
            formulas=[
                Formula(id="essentiel", name="Essentiel"),
                Formula(
                    id="confort",
                    name="Confort",
                    additional_price=Decimal("20"),
                    additional_duration=15,
                ),
                Formula(
                    id="premium",
                    name="Premium",
                    additional_price=Decimal("40"),
                    additional_duration=30,
                ),
            ],
            add_ons=[
                AddOn(id="pet-hair", name="Retrait poils d'animaux", price=Decimal("15"), duration=20),
                AddOn(id="headlights", name="Rénovation des phares", price=Decimal("35"), duration=45),
            ],
        ),
        ServiceCatalogItem(
            id="interior-clean",
            name="Nettoyage intérieur",
            category_id="interior",
            base_price=Decimal("45"),
            base_duration_minutes=45,
            vehicle_size_variations={
                "large": SizeVariation(price=Decimal("15"), duration=15),
            },
            add_ons=[
                AddOn(id="seat-shampoo", name="Shampoing sièges", price=Decimal("25"), duration=30),
            ],
        ),
        ServiceCatalogItem(
            id="ceramic-coating",
            name="Traitement céramique",
            category_id="protection",
            base_price=Decimal("390"),
            base_duration_minutes=240,
            is_active=False,
        ),
    ]


_services: dict[str, list[ServiceCatalogItem]] = {}
_vehicle_sizes: dict[str, list[VehicleSize]] = {}


def _seed() -> None:
    _services[DEMO_SHOP_ID] = _demo_services()
    _vehicle_sizes[DEMO_SHOP_ID] = _demo_vehicle_sizes()


def get_services(shop_id: str, include_inactive: bool = False) -> list[ServiceCatalogItem]:
    """Return the shop's bookable services (active ones unless asked otherwise)."""
    services = _services.get(shop_id, [])
    if include_inactive:
        return list(services)
    return [s for s in services if s.is_active]


def get_service(shop_id: str, service_id: str) -> Optional[ServiceCatalogItem]:
    """Get one service by id, active or not. Returns None if not found."""
    for service in _services.get(shop_id, []):
        if service.id == service_id:
            return service
    return None


def get_vehicle_sizes(shop_id: str) -> list[VehicleSize]:
    """Return the shop's vehicle sizes in display order."""
    return sorted(_vehicle_sizes.get(shop_id, []), key=lambda size: size.order)


def save_catalog(
    shop_id: str,
    services: list[ServiceCatalogItem],
    vehicle_sizes: Optional[list[VehicleSize]] = None,
) -> None:
    """Replace the catalog of a shop."""
    _services[shop_id] = list(services)
    if vehicle_sizes is not None:
        _vehicle_sizes[shop_id] = list(vehicle_sizes)
    logger.info("Catalog saved for shop %s: %d service(s)", shop_id, len(services))


def reset() -> None:
    """Restore the demo catalog. Used by test fixtures for isolation."""
    _services.clear()
    _vehicle_sizes.clear()
    _seed()


_seed()
