# models/catalog.py
from .base_model import BaseModel


class Category(BaseModel):
    collection_name = "categories"

    def __init__(self, name, description=None, image_url=None, **kwargs):
        super().__init__(**kwargs)
        self.name = name.strip()
        self.description = description
        self.image_url = image_url


class Color(BaseModel):
    collection_name = "colors"

    def __init__(self, name, hex_code, **kwargs):
        super().__init__(**kwargs)
        self.name = name.strip()
        self.hex_code = hex_code


class Fabric(BaseModel):
    collection_name = "fabrics"

    def __init__(self, name, description=None, **kwargs):
        super().__init__(**kwargs)
        self.name = name.strip()
        self.description = description


class Store(BaseModel):
    collection_name = "stores"

    def __init__(self, name, address, phone=None, is_active=True, **kwargs):
        super().__init__(**kwargs)
        self.name = name.strip()
        self.address = address
        self.phone = phone
        self.is_active = is_active
