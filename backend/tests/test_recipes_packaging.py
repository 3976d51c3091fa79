# Overview: Pytest coverage for recipe versioning and packaging runs.

import pytest

from brewplan.enums import BatchStatus, RecipeStatus
from brewplan.errors import InvalidStateError, NotFoundError, ValidationError
from brewplan.models import BrewBatch, FinishedGoodsStock, Recipe
from brewplan.services.packaging_service import PackagingService
from brewplan.services.recipe_service import RecipeBook


@pytest.fixture
def book(db_session):
    return RecipeBook(db_session)


class TestRecipes:
    def test_create_sums_time_estimates(self, book):
        recipe = book.create({
            "name": "Stout", "style": "Dry Irish Stout", "batch_size_litres": 500,
            "estimated_fermentation_days": 10,
        })
        assert recipe.version == 1
        assert recipe.status == RecipeStatus.DRAFT
        assert recipe.estimated_total_days == 1 + 10 + 7

    def test_create_requires_positive_size(self, book):
        with pytest.raises(ValidationError):
            book.create({"name": "Stout", "style": "Stout", "batch_size_litres": 0})

    def test_add_ingredient_defaults_unit_from_item(self, book, recipe, hops):
        ingredient = book.add_ingredient(recipe.id, {
            "inventory_item_id": hops.id, "quantity": 0.4, "usage_stage": "whirlpool",
        })
        assert ingredient.unit == hops.unit
        assert len(book.get(recipe.id).ingredients) == 2

    def test_create_version_copies_ingredients(self, db_session, book, recipe):
        v2 = book.create_version(recipe.id, {"target_ibu": 42})

        assert v2.version == 2
        assert v2.parent_recipe_id == recipe.id
        assert v2.status == RecipeStatus.DRAFT
        assert v2.target_ibu == 42
        assert v2.name == recipe.name
        assert [(i.inventory_item_id, i.quantity) for i in v2.ingredients] == [
            (i.inventory_item_id, i.quantity) for i in recipe.ingredients
        ]
        assert db_session.get(Recipe, recipe.id).version == 1

    def test_versioning_an_old_version_skips_taken_numbers(self, book, recipe):
        book.create_version(recipe.id)
        v3 = book.create_version(recipe.id)
        assert v3.version == 3

    def test_create_version_rejects_unknown_fields(self, book, recipe):
        with pytest.raises(ValidationError):
            book.create_version(recipe.id, {"id": 99})

    def test_lineage_walks_to_root(self, book, recipe):
        v2 = book.create_version(recipe.id)
        v3 = book.create_version(v2.id)

        lineage = book.get_lineage(v3.id)
        assert [r.id for r in lineage] == [v3.id, v2.id, recipe.id]
        assert lineage[-1].parent_recipe_id is None

    def test_lineage_of_missing_recipe(self, book):
        with pytest.raises(NotFoundError):
            book.get_lineage(5150)


class TestPackaging:
    @pytest.fixture
    def service(self, db_session):
        return PackagingService(db_session)

    def test_packaging_run_creates_stock(self, service, packaged_batch, recipe):
        run, stock = service.record_packaging_run(packaged_batch.id, {
            "format": "can_375ml", "quantity_units": 960, "unit_price_cents": 450,
        })

        assert run.quantity_units == 960
        assert stock.recipe_id == recipe.id
        assert stock.brew_batch_id == packaged_batch.id
        assert stock.packaging_run_id == run.id
        assert stock.quantity_on_hand == 960
        assert stock.quantity_reserved == 0
        assert [s.id for s in service.list_finished_goods(in_stock_only=True)] == [stock.id]

    def test_packaging_does_not_move_batch(self, db_session, service, packaged_batch):
        service.record_packaging_run(packaged_batch.id, {"format": "keg_50l", "quantity_units": 4})
        assert db_session.get(BrewBatch, packaged_batch.id).status == BatchStatus.READY_TO_PACKAGE

    def test_fermenting_batch_cannot_be_packaged(self, db_session, service, packaged_batch):
        packaged_batch.status = BatchStatus.FERMENTING
        db_session.commit()

        with pytest.raises(InvalidStateError):
            service.record_packaging_run(packaged_batch.id, {"format": "keg_50l", "quantity_units": 4})
        assert db_session.query(FinishedGoodsStock).count() == 0

    @pytest.mark.parametrize("data", [
        {"format": "keg_50l", "quantity_units": 0},
        {"format": "keg_50l"},
        {"format": "barrel", "quantity_units": 1},
    ])
    def test_packaging_validation(self, service, packaged_batch, data):
        with pytest.raises(ValidationError):
            service.record_packaging_run(packaged_batch.id, data)
