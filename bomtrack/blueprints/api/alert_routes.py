from flask import Blueprint, current_app, request

from ...services.bom_engine import (
    compute_active_alerts,
    compute_dashboard,
    compute_predictive_alerts,
    compute_reorder_recommendations,
)
from ...services.dashboard_cache import cached_payload
from ...utils.api_responses import APIResponse, api_route
from ...utils.validation_helpers import validate_bounded_int
from .context import engine_settings, tenant_repository

alert_api_bp = Blueprint('bom_alerts', __name__)


def _forecast_days(settings):
    return validate_bounded_int(
        request.args.get('forecast_days'),
        'forecast_days',
        minimum=1,
        maximum=current_app.config.get('BOM_FORECAST_DAYS_MAX', 90),
        default=settings.default_forecast_days,
    )


def _target_days(settings):
    return validate_bounded_int(
        request.args.get('target_days_of_stock'),
        'target_days_of_stock',
        minimum=1,
        maximum=current_app.config.get('BOM_TARGET_DAYS_MAX', 365),
        default=settings.default_target_days,
    )


@alert_api_bp.route('/active', methods=['GET'])
@api_route
def active_alerts(tenant_id):
    """Materials at or below their reorder level"""
    repository = tenant_repository(tenant_id)
    report = compute_active_alerts(repository.list_materials(), repository.list_active_recipes())
    return APIResponse.success(report.to_dict())


@alert_api_bp.route('/predictive', methods=['GET'])
@api_route
def predictive_alerts(tenant_id):
    settings = engine_settings()
    forecast_days = _forecast_days(settings)

    repository = tenant_repository(tenant_id)
    alerts = compute_predictive_alerts(
        repository.list_materials(),
        repository.list_transactions(settings.usage_window_days),
        forecast_days,
        settings,
    )
    return APIResponse.success({
        'forecast_days': forecast_days,
        'usage_window_days': settings.usage_window_days,
        'alerts': [alert.to_dict() for alert in alerts],
        'total_alerts': len(alerts),
    })


@alert_api_bp.route('/reorder-recommendations', methods=['GET'])
@api_route
def reorder_recommendations(tenant_id):
    settings = engine_settings()
    target_days = _target_days(settings)

    repository = tenant_repository(tenant_id)
    recommendations = compute_reorder_recommendations(
        repository.list_materials(),
        repository.list_transactions(settings.usage_window_days),
        target_days,
        settings,
    )
    return APIResponse.success({
        'target_days_of_stock': target_days,
        'recommendations': [rec.to_dict() for rec in recommendations],
        'total_recommendations': len(recommendations),
        'total_estimated_cost': round(sum(rec.estimated_cost for rec in recommendations), 2),
    })


@alert_api_bp.route('/dashboard', methods=['GET'])
@api_route
def alert_dashboard(tenant_id):
    settings = engine_settings()
    forecast_days = _forecast_days(settings)
    target_days = _target_days(settings)

    def build():
        repository = tenant_repository(tenant_id)
        dashboard = compute_dashboard(
            repository.list_materials(),
            repository.list_transactions(settings.usage_window_days),
            repository.list_active_recipes(),
            settings,
            forecast_days=forecast_days,
            target_days_of_stock=target_days,
        )
        return dashboard.to_dict()

    payload = cached_payload(str(tenant_id), f'alerts:{forecast_days}:{target_days}', build)
    return APIResponse.success(payload)
