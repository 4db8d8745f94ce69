from flask import current_app

from ...services.bom_engine import EngineSettings
from ...services.bom_repository import BomRepository


def engine_settings() -> EngineSettings:
    return EngineSettings.from_mapping(current_app.config)


def tenant_repository(tenant_id) -> BomRepository:
    return BomRepository(tenant_id)
