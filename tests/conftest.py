"""
Pytest configuration and shared fixtures for BomTrack tests.
"""
import os
import tempfile

import pytest

from bomtrack import create_app
from bomtrack.extensions import db
from bomtrack.models import (
    INVENTORY_BOM,
    INVENTORY_SIMPLE,
    Material,
    Product,
    Recipe,
    RecipeComponent,
)

from tests.bom_factories import TENANT_ID


@pytest.fixture(scope='function')
def app():
    """Create and configure a new app instance for each test."""
    db_fd, db_path = tempfile.mkstemp()

    app = create_app({
        'TESTING': True,
        'DATABASE_URL': f'sqlite:///{db_path}',
        'SECRET_KEY': 'test-secret-key',
    })

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()

    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """A test runner for the app's Click commands."""
    return app.test_cli_runner()


@pytest.fixture
def app_context(app):
    """Provide an application context for tests that need it."""
    with app.app_context():
        yield


@pytest.fixture
def bom_catalog(app):
    """
    Two BOM products sharing Flour, a BOM product without a recipe and a
    simple-inventory product, all owned by ``TENANT_ID``.

    Bread: 2 flour + 1 water per unit -> Flour 100 / 2 = 50, Water 200 / 1 = 200.
    Cake: 5 flour (10% waste = 5.5) + 1 sugar -> Flour 18, Sugar 8 (the bottleneck).
    """
    with app.app_context():
        flour = Material(tenant_id=TENANT_ID, name='Flour', unit='kg', stock_quantity=100.0,
                         reorder_level=40.0, unit_cost=1.5)
        water = Material(tenant_id=TENANT_ID, name='Water', unit='l', stock_quantity=200.0,
                         reorder_level=10.0, unit_cost=0.01)
        sugar = Material(tenant_id=TENANT_ID, name='Sugar', unit='kg', stock_quantity=8.0,
                         reorder_level=20.0, unit_cost=2.0)
        db.session.add_all([flour, water, sugar])
        db.session.flush()

        bread = Product(tenant_id=TENANT_ID, name='Bread', sku='BRD', inventory_management_type=INVENTORY_BOM)
        cake = Product(tenant_id=TENANT_ID, name='Cake', sku='CKE', inventory_management_type=INVENTORY_BOM)
        draft = Product(tenant_id=TENANT_ID, name='Draft', sku='DRF', inventory_management_type=INVENTORY_BOM)
        gift = Product(tenant_id=TENANT_ID, name='Gift Card', sku='GFT', inventory_management_type=INVENTORY_SIMPLE)
        db.session.add_all([bread, cake, draft, gift])
        db.session.flush()

        bread_recipe = Recipe(tenant_id=TENANT_ID, product_id=bread.id, name='Bread v1', is_active=True)
        cake_recipe = Recipe(tenant_id=TENANT_ID, product_id=cake.id, name='Cake v1', is_active=True)
        db.session.add_all([bread_recipe, cake_recipe])
        db.session.flush()

        db.session.add_all([
            RecipeComponent(recipe_id=bread_recipe.id, material_id=flour.id, quantity_required=2.0),
            RecipeComponent(recipe_id=bread_recipe.id, material_id=water.id, quantity_required=1.0),
            RecipeComponent(recipe_id=cake_recipe.id, material_id=flour.id, quantity_required=5.0,
                            waste_percentage=10.0),
            RecipeComponent(recipe_id=cake_recipe.id, material_id=sugar.id, quantity_required=1.0),
        ])
        db.session.commit()

        return {
            'flour': flour.id,
            'water': water.id,
            'sugar': sugar.id,
            'bread': bread.id,
            'cake': cake.id,
            'draft': draft.id,
            'gift': gift.id,
        }
