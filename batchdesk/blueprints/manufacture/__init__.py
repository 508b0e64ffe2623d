from flask import Blueprint

batch_planning_bp = Blueprint('batch_planning', __name__)
manufacture_orders_bp = Blueprint('manufacture_orders', __name__)

# Import routes to register them
from . import planning_routes, order_routes  # noqa: E402,F401
