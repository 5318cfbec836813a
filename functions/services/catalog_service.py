"""Catalog service for DesignFlow.

Loads a point-in-time CatalogSnapshot of active product records from
Firestore. The snapshot is taken once per pipeline run and handed to the
engines by value.
"""

from typing import Any, Dict, List, Optional, Type, TypeVar

import structlog
from pydantic import BaseModel, ValidationError as PydanticValidationError
from firebase_admin import firestore

from config.errors import DesignFlowError, ErrorCode
from config.settings import settings
from models.catalog import (
    AddonRecord,
    CatalogSnapshot,
    DoorProfileRecord,
    HardwareRecord,
    MaterialRecord,
    ModuleRecord,
)
from services.firestore_service import idempotent_retry

logger = structlog.get_logger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class CatalogService:
    """Reads the product catalog collections."""

    COLLECTION_MATERIALS = "materials"
    COLLECTION_HARDWARE = "hardware"
    COLLECTION_DOOR_PROFILES = "doorProfiles"
    COLLECTION_MODULES = "modules"
    COLLECTION_ADDONS = "addons"

    def __init__(self, db=None, use_default: Optional[bool] = None):
        """Initialize CatalogService.

        Args:
            db: Optional Firestore client. If not provided, uses default.
            use_default: Serve the built-in catalog when Firestore has no
                modules. Defaults to emulator mode.
        """
        self._db = db
        self.use_default = settings.is_emulator_mode if use_default is None else use_default

    @property
    def db(self):
        """Get Firestore client (lazy initialization)."""
        if self._db is None:
            self._db = firestore.client()
        return self._db

    async def load_snapshot(self) -> CatalogSnapshot:
        """Load every active catalog record.

        Returns:
            CatalogSnapshot.

        Raises:
            DesignFlowError: If the read fails or, outside emulator mode, the
                catalog has no modules to price against.
        """
        try:
            snapshot = CatalogSnapshot(
                materials=tuple(self._load(self.COLLECTION_MATERIALS, MaterialRecord)),
                hardware=tuple(self._load(self.COLLECTION_HARDWARE, HardwareRecord)),
                door_profiles=tuple(self._load(self.COLLECTION_DOOR_PROFILES, DoorProfileRecord)),
                modules=tuple(self._load(self.COLLECTION_MODULES, ModuleRecord)),
                addons=tuple(self._load(self.COLLECTION_ADDONS, AddonRecord)),
            )
        except Exception as e:
            logger.error("catalog_load_failed", error=str(e))
            raise DesignFlowError(
                code=ErrorCode.CATALOG_LOAD_FAILED,
                message=f"Failed to load product catalog: {str(e)}",
            )

        if not snapshot.modules:
            if self.use_default:
                logger.warning("catalog_empty_using_default")
                return default_catalog()
            raise DesignFlowError(
                code=ErrorCode.CATALOG_LOAD_FAILED,
                message="Product catalog has no module records",
                details=snapshot.counts()
            )

        logger.info("catalog_loaded", **snapshot.counts())
        return snapshot

    @idempotent_retry
    def _stream(self, collection: str) -> List[Any]:
        return list(self.db.collection(collection).stream())

    def _load(self, collection: str, model: Type[RecordT]) -> List[RecordT]:
        records: List[RecordT] = []
        for doc in self._stream(collection):
            data: Dict[str, Any] = doc.to_dict() or {}
            if not data.get("active", True):
                continue
            data.setdefault("code", doc.id)
            try:
                records.append(model.model_validate(data))
            except PydanticValidationError as e:
                logger.warning(
                    "catalog_record_skipped",
                    collection=collection,
                    doc_id=doc.id,
                    errors=len(e.errors())
                )
        return records


def default_catalog() -> CatalogSnapshot:
    """Built-in catalog for emulator and local runs. Prices in cents."""
    return CatalogSnapshot(
        materials=(
            MaterialRecord(code="POL-NOWM", name="Natural Oak Woodmatt", price_per_unit=89000),
            MaterialRecord(code="POL-CWSM", name="Classic White Satin", price_per_unit=72000),
            MaterialRecord(code="POL-BTWM", name="Black Timber Woodmatt", price_per_unit=94000),
            MaterialRecord(code="POL-ACSM", name="Antique Cream Satin", price_per_unit=78000),
            MaterialRecord(code="POL-PBWM", name="Pale Birch Woodmatt", price_per_unit=86000),
            MaterialRecord(code="POL-CGSM", name="Charcoal Grey Satin", price_per_unit=118000),
        ),
        hardware=(
            HardwareRecord(code="HW-BRASS-BAR", name="Brass bar handles", price_per_unit=46000, price_variance=10),
            HardwareRecord(code="HW-BLACK-BAR", name="Matte black bar handles", price_per_unit=32000, price_variance=5),
            HardwareRecord(code="HW-BLACK-KNOB", name="Matte black knobs", price_per_unit=28000, price_variance=5),
            HardwareRecord(code="HW-BRASS-KNOB", name="Brass knobs", price_per_unit=38000, price_variance=10),
            HardwareRecord(code="HW-WHITE-BAR", name="White bar handles", price_per_unit=26000),
        ),
        door_profiles=(
            DoorProfileRecord(code="DP-FLAT", name="Flat Panel", price_per_door=0),
            DoorProfileRecord(code="DP-SHAKER", name="Classic Shaker", price_per_door=3500),
            DoorProfileRecord(code="DP-SLIMSHAKER", name="Slimline Shaker", price_per_door=2500),
            DoorProfileRecord(code="DP-RAISED", name="Raised Panel", price_per_door=5000),
        ),
        modules=(
            ModuleRecord(code="MOD-BASE-600", name="Base Cabinet 600mm", category="base", default_width=600, min_width=450, max_width=900, price_per_unit=42000),
            ModuleRecord(code="MOD-BASE-SINK", name="Sink Base Cabinet", category="base", default_width=900, min_width=600, max_width=1200, price_per_unit=48000),
            ModuleRecord(code="MOD-BASE-DRAWER", name="Drawer Stack", category="base", default_width=600, min_width=450, max_width=900, price_per_unit=68000),
            ModuleRecord(code="MOD-TALL-PANTRY", name="Pull-out Pantry", category="tall", default_width=450, min_width=300, max_width=600, price_per_unit=95000),
            ModuleRecord(code="MOD-BASE-CORNER", name="Corner Carousel", category="corner", default_width=900, min_width=600, max_width=1000, price_per_unit=78000),
            ModuleRecord(code="MOD-TALL-OVEN", name="Appliance Tower", category="tall", default_width=600, min_width=600, max_width=600, price_per_unit=88000),
            ModuleRecord(code="MOD-BASE-OPEN", name="Open Shelving", category="base", default_width=400, min_width=300, max_width=600, price_per_unit=30000),
            ModuleRecord(code="MOD-OH-600", name="Wall Cabinet 600mm", category="overhead", default_width=600, min_width=300, max_width=900, price_per_unit=36000),
            ModuleRecord(code="MOD-OH-GLASS", name="Glass Door Cabinet", category="overhead", default_width=450, min_width=300, max_width=600, price_per_unit=52000),
            ModuleRecord(code="MOD-OH-OPEN", name="Open Wall Shelf", category="overhead", default_width=400, min_width=300, max_width=600, price_per_unit=22000),
            ModuleRecord(code="MOD-OH-RANGEHOOD", name="Rangehood Cavity", category="overhead", default_width=900, min_width=600, max_width=900, price_per_unit=30000),
            ModuleRecord(code="MOD-OH-LIFTUP", name="Lift-up Cabinet", category="overhead", default_width=600, min_width=450, max_width=900, price_per_unit=64000),
        ),
        addons=(
            AddonRecord(code="ADDON-LED-STRIP", name="LED Strip Lighting", price_per_unit=4500),
            AddonRecord(code="ADDON-BIN-PULLOUT", name="Bin Pull-out", price_per_unit=18500),
        ),
    )
