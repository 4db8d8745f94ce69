import logging

logger = logging.getLogger(__name__)


def register_blueprints(app):
    """Register all blueprints with the Flask app."""

    successful_registrations = []
    failed_registrations = []

    def safe_register_blueprint(import_path, blueprint_name, url_prefix=None, description=None):
        """Register a blueprint, recording failures instead of aborting startup."""
        try:
            module_path, bp_name = import_path.rsplit('.', 1)
            module = __import__(module_path, fromlist=[bp_name])
            blueprint = getattr(module, bp_name)

            if url_prefix:
                app.register_blueprint(blueprint, url_prefix=url_prefix)
            else:
                app.register_blueprint(blueprint)

            successful_registrations.append(description or blueprint_name)
            return True
        except (ImportError, AttributeError) as e:
            failed_registrations.append(f"{description or blueprint_name}: {e}")
            return False

    safe_register_blueprint('bomtrack.blueprints.api.bom_api_bp', 'bom_api_bp', description='BOM API')

    logger.info("Registered blueprints: %s", ", ".join(successful_registrations) or "none")
    for failure in failed_registrations:
        logger.error("Blueprint registration failed: %s", failure)

    if app.config.get("TESTING") and failed_registrations:
        raise RuntimeError(f"Blueprint registration failed: {failed_registrations}")

    return successful_registrations, failed_registrations
