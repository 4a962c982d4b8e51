from .product import Product
from .attribute import Attribute
