"""Service catalog data models: services, formulas, add-ons and vehicle sizes."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class VehicleSize(BaseModel):
    """A vehicle size category offered by a shop."""

    id: str
    name: str
    description: Optional[str] = None
    order: int = 0


class SizeVariation(BaseModel):
    """Additive surcharge a service applies for one vehicle size."""

    price: Decimal = Field(default=Decimal("0"), ge=0)
    duration: int = Field(default=0, ge=0)


class Formula(BaseModel):
    """A named upgrade tier of a service (e.g. "Premium")."""

    id: str
    name: str
    additional_price: Decimal = Field(default=Decimal("0"), ge=0)
    additional_duration: int = Field(default=0, ge=0)


class AddOn(BaseModel):
    """An optional extra priced and timed independently of the base service."""

    id: str
    name: str = ""
    price: Decimal = Field(default=Decimal("0"), ge=0)
    duration: int = Field(default=0, ge=0)


class ServiceCatalogItem(BaseModel):
    """A bookable service with its size, formula and add-on pricing."""

    id: str
    name: str = ""
    category_id: Optional[str] = None
    base_price: Decimal = Field(ge=0)
    base_duration_minutes: int = Field(ge=0)
    vehicle_size_variations: dict[str, SizeVariation] = Field(default_factory=dict)
    formulas: list[Formula] = Field(default_factory=list)
    add_ons: list[AddOn] = Field(default_factory=list)
    is_active: bool = True

    def size_variation(self, vehicle_size_id: Optional[str]) -> Optional[SizeVariation]:
        if vehicle_size_id is None:
            return None
        return self.vehicle_size_variations.get(vehicle_size_id)

    def formula(self, formula_id: Optional[str]) -> Optional[Formula]:
        if formula_id is None:
            return None
        for formula in self.formulas:
            if formula.id == formula_id:
                return formula
        return None

    def default_formula(self) -> Optional[Formula]:
        """First formula of the service, preselected when it offers only one."""
        return self.formulas[0] if self.formulas else None
