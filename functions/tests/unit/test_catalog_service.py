"""Unit tests for the catalog service."""

import pytest
from unittest.mock import MagicMock

from config.errors import DesignFlowError, ErrorCode
from engine.pricing_engine import MODULE_CODES
from engine.style_presets import STYLE_PRESETS
from services.catalog_service import CatalogService, default_catalog
from tests.fixtures.mock_catalog_data import CATALOG_DOCUMENTS


def _doc(doc_id, data):
    doc = MagicMock()
    doc.id = doc_id
    doc.to_dict.return_value = dict(data)
    return doc


def _mock_db(documents):
    """Firestore client double whose collections stream the given documents."""
    db = MagicMock()

    def collection(name):
        coll = MagicMock()
        coll.stream.return_value = [_doc(k, v) for k, v in documents.get(name, {}).items()]
        return coll

    db.collection.side_effect = collection
    return db


class TestLoadSnapshot:
    """Tests for CatalogService.load_snapshot()."""

    @pytest.mark.asyncio
    async def test_loads_active_records(self):
        service = CatalogService(db=_mock_db(CATALOG_DOCUMENTS), use_default=False)

        catalog = await service.load_snapshot()

        assert catalog.counts() == {
            "materials": 2,
            "hardware": 3,
            "door_profiles": 2,
            "modules": 7,
            "addons": 2,
        }
        assert catalog.material("POL-OLD") is None
        assert catalog.hardware_item("HW-TEST-1200").price_variance == 5
        assert catalog.module_width_constraint() == 600

    @pytest.mark.asyncio
    async def test_document_id_is_the_code(self):
        service = CatalogService(db=_mock_db(CATALOG_DOCUMENTS), use_default=False)

        catalog = await service.load_snapshot()

        assert catalog.door_profile("DP-SHAKER").price_per_door == 3500

    @pytest.mark.asyncio
    async def test_invalid_record_is_skipped(self):
        documents = {
            "modules": {
                "MOD-BASE-600": {"pricePerUnit": 42000},
                "MOD-BROKEN": {"pricePerUnit": "not a price"},
            }
        }
        service = CatalogService(db=_mock_db(documents), use_default=False)

        catalog = await service.load_snapshot()

        assert [m.code for m in catalog.modules] == ["MOD-BASE-600"]

    @pytest.mark.asyncio
    async def test_empty_catalog_raises_in_production(self):
        service = CatalogService(db=_mock_db({}), use_default=False)

        with pytest.raises(DesignFlowError) as exc_info:
            await service.load_snapshot()

        assert exc_info.value.code == ErrorCode.CATALOG_LOAD_FAILED
        assert exc_info.value.details["modules"] == 0

    @pytest.mark.asyncio
    async def test_empty_catalog_uses_default_in_emulator(self):
        service = CatalogService(db=_mock_db({}))

        catalog = await service.load_snapshot()

        assert catalog == default_catalog()

    @pytest.mark.asyncio
    async def test_read_failure(self):
        db = MagicMock()
        db.collection.side_effect = Exception("unavailable")
        service = CatalogService(db=db, use_default=True)

        with pytest.raises(DesignFlowError) as exc_info:
            await service.load_snapshot()

        assert exc_info.value.code == ErrorCode.CATALOG_LOAD_FAILED


class TestDefaultCatalog:
    """Tests for the built-in catalog."""

    def test_prices_every_module_variant(self):
        catalog = default_catalog()

        for code in MODULE_CODES.values():
            assert catalog.module(code) is not None, code

    def test_resolves_every_preset_finish(self):
        catalog = default_catalog()

        for preset in STYLE_PRESETS:
            assert catalog.material(preset.finishes.material) is not None, preset.id
            assert catalog.hardware_item(preset.finishes.hardware) is not None, preset.id
            assert catalog.door_profile(preset.finishes.door_profile) is not None, preset.id
