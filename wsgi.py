# wsgi.py
from werkzeug.middleware.dispatcher import DispatcherMiddleware

from saree_store import create_backoffice_app, create_storefront_app

storefront = create_storefront_app()
backoffice = create_backoffice_app()

# customers hit the root; staff tools live under /backoffice
application = DispatcherMiddleware(storefront, {"/backoffice": backoffice})
