# Blueprints for the storefront
from ..resources import (
    blp_auth,
    blp_public,
    blp_cart,
    blp_address,
    blp_orders,
    blp_notifications,
)

# Blueprints for back office staff
from ..resources import (
    blp_admin,
    blp_inventory,
    blp_store,
)


# Storefront Routes
def register_storefront_routes(app, api):
    blueprints = [
        blp_auth,
        blp_public,
        blp_cart,
        blp_address,
        blp_orders,
        blp_notifications,
    ]

    for blueprint in blueprints:
        api.register_blueprint(blueprint, url_prefix=f"/api/v1{blueprint.url_prefix or ''}")

    # Root route
    @app.route('/')
    def index():
        return {"message": f"Welcome to the {app.config['APP_NAME']} API"}


# Back office Routes
def register_backoffice_routes(app, api):
    blueprints = [
        blp_auth,
        blp_admin,
        blp_inventory,
        blp_store,
        blp_notifications,
    ]

    for blueprint in blueprints:
        api.register_blueprint(blueprint, url_prefix=f"/api/v1{blueprint.url_prefix or ''}")

    @app.route('/')
    def index():
        return {"message": f"Welcome to the {app.config['APP_NAME']} back office API"}
