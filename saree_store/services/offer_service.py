# services/offer_service.py
from ..constants.service_code import ONLINE_VISIBLE_CHANNELS
from ..models.promotion import SaleOffer
from ..models.saree import Saree
from ..utils.errors import AppError, NotFoundError
from ..utils.helpers import utcnow, to_object_id, money
from ..utils.logger import Log


PERCENT_OFFER_TYPES = ("percentage", "category", "flash_sale")


class OfferService:
    """Sale offers and the effective (discounted) price of a saree."""

    @staticmethod
    def active_offers(now=None):
        now = now or utcnow()
        return SaleOffer.find({
            "is_active": True,
            "valid_from": {"$lte": now},
            "valid_until": {"$gte": now},
        })

    @staticmethod
    def offer_discount(offer, price):
        price = float(price)
        value = float(offer.get("discount_value") or 0)
        if offer.get("offer_type") in PERCENT_OFFER_TYPES:
            discount = price * value / 100
            if offer.get("max_discount"):
                discount = min(discount, float(offer["max_discount"]))
        else:
            discount = value
        return max(0.0, min(discount, price))

    @staticmethod
    def applicable_offers(saree, offers):
        """Offers naming the saree win over offers reaching it through its category."""
        direct = [o for o in offers if saree["_id"] in (o.get("product_ids") or [])]
        if direct:
            return direct
        category_id = saree.get("category_id")
        if not category_id:
            return []
        return [
            o for o in offers
            if not o.get("product_ids") and o.get("category_id") == category_id
        ]

    @staticmethod
    def price_saree(saree, offers=None):
        if offers is None:
            offers = OfferService.active_offers()
        price = float(saree.get("price") or 0)

        best, best_discount = None, 0.0
        for offer in OfferService.applicable_offers(saree, offers):
            discount = OfferService.offer_discount(offer, price)
            if discount > best_discount:
                best, best_discount = offer, discount

        return {
            "price": money(price),
            "sale_price": money(max(0.0, price - best_discount)),
            "discount": money(best_discount),
            "offer_id": str(best["_id"]) if best else None,
            "offer_name": best.get("name") if best else None,
        }

    @staticmethod
    def effective_price(saree, offers=None):
        return OfferService.price_saree(saree, offers)["sale_price"]

    @staticmethod
    def with_pricing(sarees, offers=None):
        """Serialize sarees with their pricing block attached."""
        if offers is None:
            offers = OfferService.active_offers()
        priced = []
        for saree in sarees:
            doc = Saree.serialize(saree)
            doc["pricing"] = OfferService.price_saree(saree, offers)
            priced.append(doc)
        return priced

    # ------------------------------------------------------------------
    # Admin CRUD
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_window(valid_from, valid_until):
        if valid_from and valid_until and valid_until <= valid_from:
            raise AppError("valid_until must be after valid_from")

    @staticmethod
    def create(data):
        log_tag = "[offer_service.py][OfferService][create]"
        OfferService._validate_window(data.get("valid_from"), data.get("valid_until"))
        if data.get("offer_type") == "category" and not data.get("category_id"):
            raise AppError("Category offers require a category_id")
        if data.get("offer_type") == "product" and not data.get("product_ids"):
            raise AppError("Product offers require product_ids")

        offer_id = SaleOffer(**data).save()
        Log.info(f"{log_tag} offer {offer_id} created ({data.get('offer_type')})")
        return SaleOffer.get_by_id(offer_id)

    @staticmethod
    def update(offer_id, data):
        offer = OfferService.get(offer_id)
        OfferService._validate_window(
            data.get("valid_from", offer.get("valid_from")), data.get("valid_until", offer.get("valid_until"))
        )
        if "product_ids" in data:
            data["product_ids"] = [to_object_id(p, "product_id") for p in data["product_ids"] or []]
        if "category_id" in data:
            data["category_id"] = to_object_id(data["category_id"], "category_id") if data["category_id"] else None
        SaleOffer.update(offer_id, **data)
        return SaleOffer.get_by_id(offer_id)

    @staticmethod
    def delete(offer_id):
        if not SaleOffer.delete(offer_id):
            raise NotFoundError("Sale offer not found")
        return True

    @staticmethod
    def get(offer_id):
        offer = SaleOffer.get_by_id(offer_id)
        if not offer:
            raise NotFoundError("Sale offer not found")
        return offer

    @staticmethod
    def list_all():
        return [SaleOffer.serialize(o) for o in SaleOffer.find({}, sort=[("valid_from", -1)])]

    @staticmethod
    def list_active():
        return [SaleOffer.serialize(o) for o in OfferService.active_offers()]

    @staticmethod
    def get_detail(offer_id, public=True):
        """Offer plus the sarees it applies to, priced."""
        offer = OfferService.get(offer_id)
        now = utcnow()
        if public and not (offer.get("is_active") and offer["valid_from"] <= now <= offer["valid_until"]):
            raise NotFoundError("Sale offer not found")

        query = {"is_active": True}
        if public:
            query["distribution_channel"] = {"$in": list(ONLINE_VISIBLE_CHANNELS)}
        if offer.get("product_ids"):
            query["_id"] = {"$in": offer["product_ids"]}
        elif offer.get("category_id"):
            query["category_id"] = offer["category_id"]
        else:
            return {"offer": SaleOffer.serialize(offer), "products": []}

        sarees = Saree.find(query, sort=[("name", 1)])
        return {
            "offer": SaleOffer.serialize(offer),
            "products": OfferService.with_pricing(sarees, OfferService.active_offers(now)),
        }
