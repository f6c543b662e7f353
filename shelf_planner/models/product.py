import warnings
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional

from shelf_planner.utils.error_handler import DataIntegrityWarning


@dataclass(frozen=True)
class Product:
    """Product master record as seen by the layout engine"""
    product_id: str
    name: str

    # Dimensions (in cm)
    width: float

    # 1 = best seller, higher = worse
    sales_rank: int

    category: str = ""
    jan: str = ""
    height: float = 0.0
    depth: float = 0.0

    # Business metrics, ranking/reporting inputs only
    sales: float = 0.0
    quantity: float = 0.0
    gross_profit: float = 0.0
    traffic: float = 0.0

    def to_dict(self) -> Dict:
        return {
            'product_id': self.product_id,
            'name': self.name,
            'width': self.width,
            'sales_rank': self.sales_rank,
            'category': self.category,
            'jan': self.jan,
            'height': self.height,
            'depth': self.depth,
            'sales': self.sales,
            'quantity': self.quantity,
            'gross_profit': self.gross_profit,
            'traffic': self.traffic,
        }


class ProductCatalog:
    """Read-only product lookup injected into every engine call"""

    def __init__(self, products: Iterable[Product] = ()):
        self._products: Dict[str, Product] = {p.product_id: p for p in products}

    def __len__(self) -> int:
        return len(self._products)

    def __contains__(self, product_id: str) -> bool:
        return product_id in self._products

    def __iter__(self) -> Iterator[Product]:
        return iter(self._products.values())

    def get(self, product_id: str) -> Optional[Product]:
        return self._products.get(product_id)

    def width_of(self, product_id: str) -> float:
        """Single-facing width; unknown products take no space"""
        product = self._products.get(product_id)
        if product is None:
            warnings.warn(
                f"Placement references unknown product {product_id!r}",
                DataIntegrityWarning,
                stacklevel=2,
            )
            return 0.0
        return product.width

    def occupied_width(self, placement) -> float:
        return self.width_of(placement.product_id) * placement.face_count

    def name_of(self, product_id: str) -> str:
        product = self._products.get(product_id)
        return product.name if product else product_id
