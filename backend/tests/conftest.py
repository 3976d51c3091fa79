"""
Pytest fixtures for brewplan backend tests.

Provides an in-memory application, a per-test table wipe, a test client and
small reference-data fixtures (supplier, malt, recipe, vessel, customer,
finished goods).
"""

import pytest

from brewplan import create_app
from brewplan.enums import (
    BatchStatus,
    InventoryCategory,
    PackageFormat,
    RecipeStatus,
    Unit,
    UsageStage,
    VesselStatus,
    VesselType,
)
from brewplan.extensions import db
from brewplan.models import (
    BrewBatch,
    Customer,
    FinishedGoodsStock,
    InventoryItem,
    Recipe,
    RecipeIngredient,
    Supplier,
    Vessel,
)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'TRANSACTION_RETRY_ATTEMPTS': 2,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def supplier(db_session):
    supplier = Supplier(name="Malt Merchants", lead_time_days=5)
    db_session.add(supplier)
    db_session.commit()
    return supplier


@pytest.fixture(scope='function')
def malt(db_session, supplier):
    """Base malt, 250c/kg, bought from `supplier`."""
    item = InventoryItem(
        name="Maris Otter",
        supplier_id=supplier.id,
        category=InventoryCategory.GRAIN,
        unit=Unit.KG,
        unit_cost_cents=250,
    )
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture(scope='function')
def hops(db_session):
    item = InventoryItem(
        name="Galaxy",
        category=InventoryCategory.HOP,
        unit=Unit.KG,
        unit_cost_cents=4500,
    )
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture(scope='function')
def recipe(db_session, malt):
    """Pale ale for 100 L using 7.5 kg of malt."""
    recipe = Recipe(
        name="Pale Ale",
        style="American Pale Ale",
        status=RecipeStatus.ACTIVE,
        version=1,
        batch_size_litres=100,
        estimated_brew_days=1,
        estimated_fermentation_days=14,
        estimated_conditioning_days=7,
        estimated_total_days=22,
    )
    db_session.add(recipe)
    db_session.flush()
    db_session.add(RecipeIngredient(
        recipe_id=recipe.id,
        inventory_item_id=malt.id,
        quantity=7.5,
        unit=Unit.KG,
        usage_stage=UsageStage.MASH,
    ))
    db_session.commit()
    return recipe


@pytest.fixture(scope='function')
def vessel(db_session):
    vessel = Vessel(
        name="FV1",
        vessel_type=VesselType.FERMENTER,
        capacity_litres=1000,
        status=VesselStatus.AVAILABLE,
    )
    db_session.add(vessel)
    db_session.commit()
    return vessel


@pytest.fixture(scope='function')
def customer(db_session):
    customer = Customer(name="The Local")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def packaged_batch(db_session, recipe):
    batch = BrewBatch(
        batch_number="BP-2000-001",
        recipe_id=recipe.id,
        status=BatchStatus.READY_TO_PACKAGE,
        batch_size_litres=100,
    )
    db_session.add(batch)
    db_session.commit()
    return batch


@pytest.fixture(scope='function')
def keg_stock(db_session, recipe, packaged_batch):
    """20 x 50L kegs of the pale ale, none reserved."""
    stock = FinishedGoodsStock(
        recipe_id=recipe.id,
        brew_batch_id=packaged_batch.id,
        format=PackageFormat.KEG_50L,
        quantity_on_hand=20,
        quantity_reserved=0,
        unit_price_cents=21000,
    )
    db_session.add(stock)
    db_session.commit()
    return stock
