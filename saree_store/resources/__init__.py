from .auth_resource import blp_auth
from .public_resource import blp_public
from .cart_resource import blp_cart
from .address_resource import blp_address
from .order_resource import blp_orders
from .notification_resource import blp_notifications
from .admin_resource import blp_admin
from .inventory_resource import blp_inventory
from .store_resource import blp_store
