"""Product catalog models for DesignFlow.

A CatalogSnapshot is a read-only, point-in-time view of the product
catalog. Prices are integer cents (AUD).
"""

from typing import Dict, Optional, Tuple

from pydantic import BaseModel, Field

# Used when a hardware record declares no variance of its own.
DEFAULT_HARDWARE_VARIANCE_PCT = 5.0

# Priced in place of any module variant without a catalog match.
DEFAULT_MODULE_CODE = "MOD-BASE-600"


class MaterialRecord(BaseModel):
    """Board/finish material (e.g. Polytec colour)."""

    code: str = Field(description="Stable catalog code, e.g. 'POL-NOWM'")
    name: str = Field(default="")
    price_per_unit: int = Field(alias="pricePerUnit", ge=0)
    active: bool = True

    class Config:
        populate_by_name = True
        frozen = True


class HardwareRecord(BaseModel):
    """Handles, hinges and runners sold as one selection."""

    code: str
    name: str = Field(default="")
    category: str = Field(default="handle")
    price_per_unit: int = Field(alias="pricePerUnit", ge=0)
    price_variance: Optional[float] = Field(
        default=None,
        alias="priceVariance",
        ge=0,
        le=100,
        description="Percentage variance for estimates (+/-)"
    )
    active: bool = True

    class Config:
        populate_by_name = True
        frozen = True

    @property
    def variance_pct(self) -> float:
        """Declared variance, or the catalog default when none is declared."""
        if self.price_variance is None:
            return DEFAULT_HARDWARE_VARIANCE_PCT
        return self.price_variance


class DoorProfileRecord(BaseModel):
    """Door profile priced per door front."""

    code: str
    name: str = Field(default="")
    price_per_door: int = Field(alias="pricePerDoor", ge=0)
    active: bool = True

    class Config:
        populate_by_name = True
        frozen = True


class ModuleRecord(BaseModel):
    """Carcass module priced per unit."""

    code: str = Field(description="e.g. 'MOD-BASE-600'")
    name: str = Field(default="")
    category: str = Field(default="base", description="base, overhead, tall, corner")
    default_width: int = Field(default=600, alias="defaultWidth")
    min_width: Optional[int] = Field(default=None, alias="minWidth")
    max_width: Optional[int] = Field(default=None, alias="maxWidth")
    price_per_unit: int = Field(alias="pricePerUnit", ge=0)
    active: bool = True

    class Config:
        populate_by_name = True
        frozen = True


class AddonRecord(BaseModel):
    """Optional extra attached to a module (lighting, bin pull-out)."""

    code: str
    name: str = Field(default="")
    price_per_unit: int = Field(alias="pricePerUnit", ge=0)
    active: bool = True

    class Config:
        populate_by_name = True
        frozen = True


class CatalogSnapshot(BaseModel):
    """Point-in-time view of the product catalog.

    Must not be refreshed mid-run; engines receive it by value.
    """

    materials: Tuple[MaterialRecord, ...] = Field(default_factory=tuple)
    hardware: Tuple[HardwareRecord, ...] = Field(default_factory=tuple)
    door_profiles: Tuple[DoorProfileRecord, ...] = Field(default_factory=tuple, alias="doorProfiles")
    modules: Tuple[ModuleRecord, ...] = Field(default_factory=tuple)
    addons: Tuple[AddonRecord, ...] = Field(default_factory=tuple)

    class Config:
        populate_by_name = True
        frozen = True

    def material(self, code: str) -> Optional[MaterialRecord]:
        return _by_code(self.materials, code)

    def hardware_item(self, code: str) -> Optional[HardwareRecord]:
        return _by_code(self.hardware, code)

    def door_profile(self, code: str) -> Optional[DoorProfileRecord]:
        return _by_code(self.door_profiles, code)

    def module(self, code: str) -> Optional[ModuleRecord]:
        return _by_code(self.modules, code)

    def addon(self, code: str) -> Optional[AddonRecord]:
        return _by_code(self.addons, code)

    def module_width_constraint(self) -> Optional[int]:
        """Nominal base module width declared by the catalog, if any."""
        standard = self.module(DEFAULT_MODULE_CODE)
        return standard.default_width if standard else None

    def counts(self) -> Dict[str, int]:
        return {
            "materials": len(self.materials),
            "hardware": len(self.hardware),
            "door_profiles": len(self.door_profiles),
            "modules": len(self.modules),
            "addons": len(self.addons),
        }


def _by_code(records, code: str):
    for record in records:
        if record.code == code and record.active:
            return record
    return None
