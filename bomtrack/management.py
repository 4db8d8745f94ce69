"""
Management commands for deployment and maintenance
"""
import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .seeders import seed_bom_demo
from .services.bom_engine import (
    EngineSettings,
    compute_active_alerts,
    compute_predictive_alerts,
)
from .services.bom_repository import BomRepository
from .services.dashboard_cache import invalidate_tenant_dashboards


@click.command('init-db')
@with_appcontext
def init_db_command():
    """Create database tables (idempotent)"""
    try:
        db.create_all()
        print("✅ Database tables created/verified")
    except Exception as e:
        print(f'❌ Database initialization failed: {str(e)}')
        raise


@click.command('seed-bom-demo')
@click.option('--tenant', 'tenant_id', required=True, help='Tenant to seed demo materials, products and recipes for')
@with_appcontext
def seed_bom_demo_command(tenant_id):
    """Seed a small BOM catalog with usage history"""
    try:
        if seed_bom_demo(tenant_id):
            invalidate_tenant_dashboards(tenant_id)
    except Exception as e:
        db.session.rollback()
        print(f'❌ Demo seeding failed: {str(e)}')
        raise


@click.command('check-stock-alerts')
@click.option('--tenant', 'tenant_id', required=True, help='Tenant to check')
@click.option('--forecast-days', type=click.IntRange(1, 90), default=None,
              help='Predictive horizon in days (default: BOM_DEFAULT_FORECAST_DAYS)')
@with_appcontext
def check_stock_alerts_command(tenant_id, forecast_days):
    """Print active and predictive stock alerts for a tenant"""
    settings = EngineSettings.from_mapping(current_app.config)
    forecast_days = forecast_days or settings.default_forecast_days

    repository = BomRepository(tenant_id)
    materials = repository.list_materials()
    active = compute_active_alerts(materials, repository.list_active_recipes())
    predictive = compute_predictive_alerts(
        materials,
        repository.list_transactions(settings.usage_window_days),
        forecast_days,
        settings,
    )

    print(f"=== Stock alerts for tenant {tenant_id} ({len(materials)} materials) ===")
    if not active.alerts:
        print("✅ No materials at or below reorder level")
    for alert in active.alerts:
        print(f"⚠️  [{alert.severity}] {alert.message}")

    print(f"=== Predicted stockouts within {forecast_days} days ===")
    if not predictive:
        print("✅ No stockouts predicted")
    for alert in predictive:
        print(
            f"⏳ [{alert.severity}] {alert.material_name}: "
            f"{alert.days_until_stockout} days left at {alert.average_daily_usage:g} {alert.unit}/day"
        )


def register_commands(app):
    """Register CLI commands"""
    # Database initialization
    app.cli.add_command(init_db_command)

    # Demo data
    app.cli.add_command(seed_bom_demo_command)

    # Operational checks
    app.cli.add_command(check_stock_alerts_command)
