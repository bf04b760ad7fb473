from flask import Flask
from flask_smorest import Api
from werkzeug.middleware.proxy_fix import ProxyFix

from .cli import register_cli
from .config import load_config
from .extensions import init_extensions
from .routes import register_backoffice_routes, register_storefront_routes
from .utils.error_handlers import register_error_handlers


def _build_app(title, register_routes, config_name=None):
    app = Flask(__name__)

    # one reverse proxy in front; trust its X-Forwarded-* headers
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=1)

    load_config(app, config_name)

    # set after load_config so env settings cannot clobber the OpenAPI keys
    app.config.update(
        API_TITLE=title,
        API_VERSION="v1",
        OPENAPI_VERSION="3.0.3",
        OPENAPI_URL_PREFIX="/api",
        OPENAPI_JSON_PATH="openapi.json",
        OPENAPI_SWAGGER_UI_PATH="/docs",
        OPENAPI_SWAGGER_UI_URL="https://cdn.jsdelivr.net/npm/swagger-ui-dist/",
    )
    api = Api(app)

    init_extensions(app)
    register_error_handlers(app)
    register_routes(app, api)
    register_cli(app)

    return app


def create_storefront_app(config_name=None):
    """Public catalog and customer APIs."""
    return _build_app("Saree Store API", register_storefront_routes, config_name)


def create_backoffice_app(config_name=None):
    """Admin, inventory and store-counter APIs."""
    return _build_app("Saree Store Back Office API", register_backoffice_routes, config_name)
