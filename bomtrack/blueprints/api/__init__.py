from flask import Blueprint

bom_api_bp = Blueprint('bom_api', __name__, url_prefix='/api/tenants/<tenant_id>/bom')

# Import all route modules to register them
from .bom_routes import production_api_bp
from .alert_routes import alert_api_bp
from .report_routes import report_api_bp

bom_api_bp.register_blueprint(production_api_bp)
bom_api_bp.register_blueprint(alert_api_bp, url_prefix='/alerts')
bom_api_bp.register_blueprint(report_api_bp, url_prefix='/reports')
