from flask import Blueprint, current_app, request

from ...services.bom_engine import (
    capacity_overview,
    executive_summary,
    material_usage_report,
    production_efficiency_report,
    recipe_costing_report,
    stock_movement_report,
)
from ...services.dashboard_cache import cached_payload
from ...utils.api_responses import APIResponse, api_route
from ...utils.validation_helpers import validate_bounded_int
from .context import engine_settings, tenant_repository

report_api_bp = Blueprint('bom_reports', __name__)


@report_api_bp.route('/executive', methods=['GET'])
@api_route
def executive(tenant_id):
    settings = engine_settings()

    def build():
        repository = tenant_repository(tenant_id)
        return executive_summary(
            repository.list_materials(),
            repository.list_bom_products(),
            repository.list_transactions(settings.usage_window_days),
            repository.list_active_recipes(),
            settings,
        )

    return APIResponse.success(cached_payload(str(tenant_id), 'executive', build))


@report_api_bp.route('/capacity', methods=['GET'])
@api_route
def capacity(tenant_id):
    products = tenant_repository(tenant_id).list_bom_products()
    return APIResponse.success(capacity_overview(products, engine_settings()))


def _report_days(settings):
    return validate_bounded_int(
        request.args.get('days'),
        'days',
        minimum=1,
        maximum=current_app.config.get('BOM_REPORT_DAYS_MAX', 365),
        default=settings.usage_window_days,
    )


@report_api_bp.route('/material-usage', methods=['GET'])
@api_route
def material_usage(tenant_id):
    settings = engine_settings()
    days = _report_days(settings)
    repository = tenant_repository(tenant_id)
    report = material_usage_report(
        repository.list_materials(),
        repository.list_transactions(days),
        days,
        settings,
    )
    return APIResponse.success(report)


@report_api_bp.route('/production-efficiency', methods=['GET'])
@api_route
def production_efficiency(tenant_id):
    products = tenant_repository(tenant_id).list_bom_products()
    return APIResponse.success(production_efficiency_report(products, engine_settings()))


@report_api_bp.route('/recipe-costing', methods=['GET'])
@api_route
def recipe_costing(tenant_id):
    products = tenant_repository(tenant_id).list_bom_products()
    return APIResponse.success(recipe_costing_report(products))


@report_api_bp.route('/stock-movement', methods=['GET'])
@api_route
def stock_movement(tenant_id):
    """Transaction counts and quantities grouped by type, reason and day"""
    settings = engine_settings()
    days = _report_days(settings)
    repository = tenant_repository(tenant_id)
    report = stock_movement_report(
        repository.list_materials(active_only=False),
        repository.list_transactions(days),
        days,
        settings,
    )
    return APIResponse.success(report)
