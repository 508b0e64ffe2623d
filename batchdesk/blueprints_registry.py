import logging

logger = logging.getLogger(__name__)


def register_blueprints(app):
    """Register all blueprints with the Flask app."""

    successful_registrations = []

    def register_blueprint(import_path, blueprint_name, url_prefix=None, description=None):
        module_path, bp_name = import_path.rsplit('.', 1)
        module = __import__(module_path, fromlist=[bp_name])
        blueprint = getattr(module, bp_name)

        if url_prefix:
            app.register_blueprint(blueprint, url_prefix=url_prefix)
        else:
            app.register_blueprint(blueprint)

        successful_registrations.append(description or blueprint_name)

    register_blueprint(
        'batchdesk.blueprints.manufacture.batch_planning_bp',
        'batch_planning_bp',
        '/api/manufacture',
        'Batch planning',
    )
    register_blueprint(
        'batchdesk.blueprints.manufacture.manufacture_orders_bp',
        'manufacture_orders_bp',
        '/api/manufacture-orders',
        'Manufacture orders',
    )

    logger.info("Registered blueprints: %s", ", ".join(successful_registrations))
