import json
from pathlib import Path
from typing import List, Union

import pandas as pd

from shelf_planner.models.fixture import Fixture, FixtureType, Store, StoreFixturePlacement
from shelf_planner.models.planogram import Block, StandardPlanogram, StorePlanogram
from shelf_planner.models.product import Product
from shelf_planner.utils.error_handler import DataLoadError, handle_errors
from shelf_planner.utils.logger import get_logger
from .repository import InMemoryRepository, Repositories


class DataLoader:
    """Load catalog files from a data directory.

    Layout::

        products.csv          product_id,name,width,sales_rank[,category,jan,height,depth,sales,quantity,gross_profit,traffic]
        fixtures.csv          fixture_id,name,width,height,shelf_count[,fixture_type]
        stores.csv            store_id,name,fmt[,code,region]
        store_fixtures.csv    id,store_id,fixture_id[,position_x,position_y,order]
        blocks.json           list of blocks with relative placements
        standard_planograms.json  optional list of standard layouts
        store_planograms.json     optional list of generated store layouts
    """

    FILES = {
        'products': 'products.csv',
        'fixtures': 'fixtures.csv',
        'stores': 'stores.csv',
        'store_fixtures': 'store_fixtures.csv',
        'blocks': 'blocks.json',
        'standards': 'standard_planograms.json',
        'store_planograms': 'store_planograms.json',
    }
    REQUIRED = ('products', 'fixtures', 'stores', 'store_fixtures')

    def __init__(self, data_path: Union[str, Path] = "data"):
        self.data_path = Path(data_path)
        self.logger = get_logger()

        # Validate paths exist
        self._validate_paths()

    def _validate_paths(self):
        """Ensure the data directory and required files exist"""
        if not self.data_path.exists():
            raise DataLoadError(f"Required path not found: {self.data_path}")
        for key in self.REQUIRED:
            path = self.data_path / self.FILES[key]
            if not path.exists():
                raise DataLoadError(f"Required file not found: {path}")

    def _path(self, key: str) -> Path:
        return self.data_path / self.FILES[key]

    def _read_csv(self, key: str, required_columns: List[str]) -> pd.DataFrame:
        # Read as text so ids keep leading zeros; numbers are converted per field
        df = pd.read_csv(self._path(key), dtype=str)
        missing = set(required_columns) - set(df.columns)
        if missing:
            raise DataLoadError(f"{self.FILES[key]} is missing columns: {sorted(missing)}")
        return df

    def _read_json(self, key: str) -> list:
        path = self._path(key)
        if not path.exists():
            return []
        with open(path, 'r', encoding='utf-8') as f:
            try:
                return json.load(f)
            except json.JSONDecodeError as e:
                raise DataLoadError(f"Invalid JSON in {path}: {e}") from e

    @staticmethod
    def _opt(row, column: str, default):
        value = row.get(column, default)
        return default if pd.isna(value) else value

    @handle_errors()
    def load_products(self) -> List[Product]:
        df = self._read_csv('products', ['product_id', 'name', 'width', 'sales_rank'])
        products = []

        for _, row in df.iterrows():
            try:
                products.append(Product(
                    product_id=str(row['product_id']).strip(),
                    name=str(row['name']).strip(),
                    width=float(row['width']),
                    sales_rank=int(float(row['sales_rank'])),
                    category=str(self._opt(row, 'category', '')),
                    jan=str(self._opt(row, 'jan', '')),
                    height=float(self._opt(row, 'height', 0.0)),
                    depth=float(self._opt(row, 'depth', 0.0)),
                    sales=float(self._opt(row, 'sales', 0.0)),
                    quantity=float(self._opt(row, 'quantity', 0.0)),
                    gross_profit=float(self._opt(row, 'gross_profit', 0.0)),
                    traffic=float(self._opt(row, 'traffic', 0.0)),
                ))
            except (TypeError, ValueError) as e:
                self.logger.warning(f"Error loading product {row.get('product_id', 'unknown')}: {e}")
                continue

        self.logger.info(f"Loaded {len(products)} products")
        return products

    @handle_errors()
    def load_fixtures(self) -> List[Fixture]:
        df = self._read_csv('fixtures', ['fixture_id', 'name', 'width', 'height', 'shelf_count'])
        fixtures = []

        for _, row in df.iterrows():
            try:
                fixtures.append(Fixture(
                    fixture_id=str(row['fixture_id']).strip(),
                    name=str(row['name']).strip(),
                    width=float(row['width']),
                    height=float(row['height']),
                    shelf_count=int(float(row['shelf_count'])),
                    fixture_type=FixtureType.parse(self._opt(row, 'fixture_type', None)),
                ))
            except (TypeError, ValueError) as e:
                self.logger.warning(f"Error loading fixture {row.get('fixture_id', 'unknown')}: {e}")
                continue

        self.logger.info(f"Loaded {len(fixtures)} fixtures")
        return fixtures

    @handle_errors()
    def load_stores(self) -> List[Store]:
        df = self._read_csv('stores', ['store_id', 'name', 'fmt'])
        stores = [
            Store(
                store_id=str(row['store_id']).strip(),
                name=str(row['name']).strip(),
                fmt=str(row['fmt']).strip(),
                code=str(self._opt(row, 'code', '')),
                region=str(self._opt(row, 'region', '')),
            )
            for _, row in df.iterrows()
        ]
        self.logger.info(f"Loaded {len(stores)} stores")
        return stores

    @handle_errors()
    def load_store_fixtures(self) -> List[StoreFixturePlacement]:
        df = self._read_csv('store_fixtures', ['id', 'store_id', 'fixture_id'])
        placements = [
            StoreFixturePlacement(
                id=str(row['id']).strip(),
                store_id=str(row['store_id']).strip(),
                fixture_id=str(row['fixture_id']).strip(),
                position_x=float(self._opt(row, 'position_x', 0.0)),
                position_y=float(self._opt(row, 'position_y', 0.0)),
                order=int(float(self._opt(row, 'order', index))),
            )
            for index, row in df.iterrows()
        ]
        self.logger.info(f"Loaded {len(placements)} store fixture placements")
        return placements

    @handle_errors()
    def load_blocks(self) -> List[Block]:
        blocks = [Block.from_dict(data) for data in self._read_json('blocks')]
        self.logger.info(f"Loaded {len(blocks)} blocks")
        return blocks

    @handle_errors()
    def load_standard_planograms(self) -> List[StandardPlanogram]:
        standards = [StandardPlanogram.from_dict(data) for data in self._read_json('standards')]
        self.logger.info(f"Loaded {len(standards)} standard layouts")
        return standards

    def load_repositories(self) -> Repositories:
        """Load every catalog into in-memory repositories"""
        return Repositories(
            products=InMemoryRepository('product_id', self.load_products()),
            stores=InMemoryRepository('store_id', self.load_stores()),
            fixtures=InMemoryRepository('fixture_id', self.load_fixtures()),
            store_fixtures=InMemoryRepository('id', self.load_store_fixtures()),
            blocks=InMemoryRepository('block_id', self.load_blocks()),
            standards=InMemoryRepository('id', self.load_standard_planograms()),
            store_planograms=InMemoryRepository('id', self.load_store_planograms()),
        )

    def save_standard_planograms(self, standards: List[StandardPlanogram]) -> Path:
        path = self._path('standards')
        with open(path, 'w', encoding='utf-8') as f:
            json.dump([s.to_dict() for s in standards], f, indent=2, ensure_ascii=False)
        self.logger.info(f"Saved {len(standards)} standard layouts to {path}")
        return path

    def get_available_formats(self) -> List[str]:
        """Store formats present in stores.csv"""
        df = self._read_csv('stores', ['fmt'])
        return sorted(df['fmt'].dropna().astype(str).unique().tolist())

    @handle_errors()
    def load_store_planograms(self) -> List[StorePlanogram]:
        planograms = [StorePlanogram.from_dict(data) for data in self._read_json('store_planograms')]
        self.logger.info(f"Loaded {len(planograms)} store layouts")
        return planograms

    def save_store_planograms(self, planograms: List[StorePlanogram]) -> Path:
        path = self._path('store_planograms')
        with open(path, 'w', encoding='utf-8') as f:
            json.dump([p.to_dict() for p in planograms], f, indent=2, ensure_ascii=False)
        self.logger.info(f"Saved {len(planograms)} store layouts to {path}")
        return path
