from .health import router as health
from .products import router as products
