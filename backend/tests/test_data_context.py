"""
Tests for the DataContext: audit stamps, logical deletion, the global filter,
trimming at the storage boundary and no-tracking reads.
"""

from decimal import Decimal
from datetime import timedelta

import pytest
from sqlalchemy import inspect, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from djstore_api.models import Category, Product, WishlistItem
from djstore_api.services.crud.data_context import DataContext
from djstore_api.services.crud.errors import EntityStateError
from djstore_api.services.crud.execution_strategy import NonRetryingExecutionStrategy


class TestCreationStamps:
    """Stamps applied to new entities."""

    @pytest.mark.asyncio
    async def test_create_sets_creation_date_and_clears_updated_date(self, data_context, clock):
        category = Category(name="Mixers")
        data_context.create(category)
        await data_context.save()

        assert category.creation_date == clock.now
        assert category.updated_date is None

        stored = await data_context.get(Category, category.id)
        assert stored.creation_date == clock.now
        assert stored.updated_date is None

    @pytest.mark.asyncio
    async def test_new_deletable_is_never_born_deleted(self, data_context, clock):
        category = Category(name="Headphones", is_deleted=True, deleted_date=clock.now)
        data_context.create(category)
        await data_context.save()

        stored = await data_context.get(Category, category.id)
        assert stored is not None
        assert stored.is_deleted is False
        assert stored.deleted_date is None

    @pytest.mark.asyncio
    async def test_entities_saved_together_share_the_same_instant(self, data_context, clock):
        categories = [Category(name=f"Category {i}") for i in range(3)]
        for category in categories:
            data_context.create(category)
        clock.advance(seconds=1)
        await data_context.save()

        stored = await data_context.get_data(Category).all()
        assert len(stored) == 3
        assert {c.creation_date for c in stored} == {clock.now}

    @pytest.mark.asyncio
    async def test_caller_supplied_creation_date_is_overwritten(self, data_context, clock):
        category = Category(name="Vinyl", creation_date=clock.now - timedelta(days=30))
        data_context.create(category)
        await data_context.save()

        assert category.creation_date == clock.now

    @pytest.mark.asyncio
    async def test_id_is_generated_on_insert(self, data_context):
        category = Category(name="Cables")
        assert category.id is None
        data_context.create(category)
        await data_context.save()
        assert category.id is not None

    @pytest.mark.asyncio
    async def test_create_rejects_persisted_entity(self, data_context, seed_category):
        with pytest.raises(EntityStateError):
            data_context.create(seed_category)

    @pytest.mark.asyncio
    async def test_create_rejects_detached_row(self, data_context, seed_category):
        detached = await data_context.get(Category, seed_category.id)
        with pytest.raises(EntityStateError):
            data_context.create(detached)


class TestUpdateStamps:
    """Stamps applied to modified entities."""

    @pytest.mark.asyncio
    async def test_update_sets_updated_date_and_keeps_creation_date(
        self, data_context, clock, seed_product
    ):
        created_at = seed_product.creation_date

        later = clock.advance(minutes=5)
        seed_product.name = "Technics SL-1210"
        await data_context.save()

        stored = await data_context.get(Product, seed_product.id)
        assert stored.name == "Technics SL-1210"
        assert stored.updated_date == later
        assert stored.creation_date == created_at

    @pytest.mark.asyncio
    async def test_unmodified_entity_is_not_stamped(self, data_context, clock, seed_product):
        clock.advance(minutes=5)
        seed_product.name = seed_product.name
        await data_context.save()

        stored = await data_context.get(Product, seed_product.id)
        assert stored.updated_date is None

    @pytest.mark.asyncio
    async def test_stamps_never_go_backwards(self, data_context, clock, seed_product):
        first = clock.now
        clock.advance(hours=-1)
        seed_product.price = Decimal("799.00")
        await data_context.save()

        stored = await data_context.get(Product, seed_product.id)
        assert stored.updated_date >= first

    @pytest.mark.asyncio
    async def test_direct_flag_mutation_is_reverted(self, data_context, clock, seed_category):
        clock.advance(minutes=1)
        seed_category.is_deleted = True
        await data_context.save()

        stored = await data_context.get(Category, seed_category.id)
        assert stored is not None
        assert stored.is_deleted is False
        assert stored.deleted_date is None
        assert stored.updated_date == clock.now

    @pytest.mark.asyncio
    async def test_tracked_query_results_can_be_updated(self, data_context, clock, seed_product):
        product = await (
            data_context.get_data(Product, tracking_changes=True)
            .where(Product.id == seed_product.id)
            .first()
        )
        assert product is seed_product

        clock.advance(minutes=2)
        product.description = "Direct drive turntable"
        await data_context.save()

        stored = await data_context.get(Product, seed_product.id)
        assert stored.description == "Direct drive turntable"
        assert stored.updated_date == clock.now


class TestLogicalDelete:
    """Deletion of deletable and non-deletable entities."""

    @pytest.mark.asyncio
    async def test_delete_of_deletable_is_logical(self, data_context, clock, seed_product):
        deleted_at = clock.advance(minutes=10)
        data_context.delete(seed_product)
        await data_context.save()

        assert await data_context.get(Product, seed_product.id) is None

        rows = await (
            data_context.get_data(Product, ignore_query_filters=True)
            .where(Product.id == seed_product.id)
            .all()
        )
        assert len(rows) == 1
        assert rows[0].is_deleted is True
        assert rows[0].deleted_date == deleted_at

        raw_count = await data_context.session.scalar(text('SELECT COUNT(*) FROM "Products"'))
        assert raw_count == 1

    @pytest.mark.asyncio
    async def test_logical_delete_does_not_touch_updated_date(self, data_context, clock, seed_product):
        clock.advance(minutes=10)
        data_context.delete(seed_product)
        await data_context.save()

        stored = await data_context.get(Product, seed_product.id, include_deleted=True)
        assert stored.updated_date is None

    @pytest.mark.asyncio
    async def test_delete_of_non_deletable_is_physical(self, data_context, seed_product):
        item = WishlistItem(product_id=seed_product.id, customer_email="dj@example.com")
        data_context.create(item)
        await data_context.save()

        data_context.delete(item)
        await data_context.save()

        assert await data_context.get(WishlistItem, item.id) is None
        raw_count = await data_context.session.scalar(text('SELECT COUNT(*) FROM "WishlistItems"'))
        assert raw_count == 0

    @pytest.mark.asyncio
    async def test_delete_all(self, data_context, seed_category):
        products = [
            Product(name=f"Needle {i}", price=Decimal("19.90"), category_id=seed_category.id)
            for i in range(3)
        ]
        for product in products:
            data_context.create(product)
        await data_context.save()

        data_context.delete_all(products[:2])
        await data_context.save()

        assert await data_context.get_data(Product).count() == 1
        assert await data_context.get_data(Product, ignore_query_filters=True).count() == 3

    @pytest.mark.asyncio
    async def test_delete_detached_row(self, data_context, seed_product):
        detached = await data_context.get(Product, seed_product.id)
        data_context.session.expunge(seed_product)

        data_context.delete(detached)
        await data_context.save()

        assert await data_context.exists(Product, seed_product.id) is False

    @pytest.mark.asyncio
    async def test_delete_of_pending_entity_drops_it(self, data_context):
        category = Category(name="Never stored")
        data_context.create(category)
        data_context.delete(category)
        await data_context.save()

        assert await data_context.get_data(Category, ignore_query_filters=True).count() == 0

    @pytest.mark.asyncio
    async def test_delete_of_transient_entity_is_rejected(self, data_context):
        with pytest.raises(EntityStateError):
            data_context.delete(Category(name="Transient"))


class TestQueryFilter:
    """Global filter hiding deleted rows."""

    @pytest.mark.asyncio
    async def test_filter_scoping(self, data_context, seed_category):
        kept = Product(name="Mixer", price=Decimal("450.00"), category_id=seed_category.id)
        removed = Product(name="Old mixer", price=Decimal("120.00"), category_id=seed_category.id)
        data_context.create(kept)
        data_context.create(removed)
        await data_context.save()

        data_context.delete(removed)
        await data_context.save()

        visible = await data_context.get_data(Product).all()
        assert [p.id for p in visible] == [kept.id]
        assert all(not p.is_deleted for p in visible)

        everything = await data_context.get_data(Product, ignore_query_filters=True).all()
        assert {p.id for p in everything} == {kept.id, removed.id}

        assert await data_context.get(Product, removed.id) is None
        found = await data_context.get(Product, removed.id, include_deleted=True)
        assert found is not None and found.is_deleted

    @pytest.mark.asyncio
    async def test_exists_honours_filter(self, data_context, seed_product):
        assert await data_context.exists(Product, seed_product.id) is True
        assert await data_context.exists(Product, Product.name == "Technics SL-1200") is True

        data_context.delete(seed_product)
        await data_context.save()

        assert await data_context.exists(Product, seed_product.id) is False
        assert await data_context.exists(Product, Product.id == seed_product.id) is False
        assert await (
            data_context.get_data(Product, ignore_query_filters=True)
            .where(Product.id == seed_product.id)
            .exists()
        ) is True

    @pytest.mark.asyncio
    async def test_count_honours_filter(self, data_context, seed_category):
        for i in range(4):
            data_context.create(Category(name=f"Extra {i}"))
        await data_context.save()

        data_context.delete(seed_category)
        await data_context.save()

        assert await data_context.get_data(Category).count() == 4
        assert await data_context.get_data(Category, ignore_query_filters=True).count() == 5

    @pytest.mark.asyncio
    async def test_filter_applies_to_tracked_queries(self, data_context, seed_product):
        data_context.delete(seed_product)
        await data_context.save()

        tracked = await data_context.get_data(Product, tracking_changes=True).all()
        assert tracked == []

    @pytest.mark.asyncio
    async def test_filter_applies_to_eager_loads(self, data_context, seed_category, seed_product):
        hidden = Product(name="Broken deck", price=Decimal("10.00"), category_id=seed_category.id)
        data_context.create(hidden)
        await data_context.save()
        data_context.delete(hidden)
        await data_context.save()

        category = await (
            data_context.get_data(Category)
            .where(Category.id == seed_category.id)
            .options(selectinload(Category.products))
            .one_or_none()
        )
        assert [p.id for p in category.products] == [seed_product.id]


class TestTrimming:
    """Text is trimmed at the storage boundary."""

    @pytest.mark.asyncio
    async def test_trim_round_trip(self, data_context, seed_category):
        product = Product(name=" Vinyl ", description="  hello \n", price=Decimal("25.00"), category_id=seed_category.id)
        data_context.create(product)
        await data_context.save()

        stored = await data_context.get(Product, product.id)
        assert stored.name == "Vinyl"
        assert stored.description == "hello"

    @pytest.mark.asyncio
    async def test_comparisons_use_trimmed_values(self, data_context, seed_category):
        data_context.create(Category(name="  Lighting  "))
        await data_context.save()

        assert await data_context.exists(Category, Category.name == "Lighting") is True
        assert await data_context.exists(Category, Category.name == " Lighting ") is True

    @pytest.mark.asyncio
    async def test_trimmed_on_non_deletable(self, data_context, seed_product):
        item = WishlistItem(product_id=seed_product.id, customer_email=" dj@example.com ", note=" soon ")
        data_context.create(item)
        await data_context.save()

        stored = await data_context.get(WishlistItem, item.id)
        assert stored.customer_email == "dj@example.com"
        assert stored.note == "soon"


class TestNoTrackingReads:
    """Rows read without tracking are detached."""

    @pytest.mark.asyncio
    async def test_get_returns_detached_copy(self, data_context, seed_product):
        stored = await data_context.get(Product, seed_product.id)
        assert stored is not seed_product
        assert inspect(stored).detached

        stored.name = "Changed in memory only"
        await data_context.save()

        again = await data_context.get(Product, seed_product.id)
        assert again.name == "Technics SL-1200"

    @pytest.mark.asyncio
    async def test_identity_resolution_within_one_materialisation(self, data_context, seed_category):
        for name in ("Cartridge", "Stylus"):
            data_context.create(Product(name=name, price=Decimal("49.00"), category_id=seed_category.id))
        await data_context.save()

        products = await (
            data_context.get_data(Product)
            .options(selectinload(Product.category))
            .order_by(Product.name)
            .all()
        )
        assert len(products) == 2
        assert products[0].category is products[1].category
        assert products[0].category is not seed_category

    @pytest.mark.asyncio
    async def test_reads_see_uncommitted_flushes_in_transaction(self, data_context):
        async def action():
            category = Category(name="Inside")
            data_context.create(category)
            await data_context.save()
            return await data_context.get(Category, category.id)

        stored = await data_context.execute_transaction(action)
        assert stored is not None
        assert stored.name == "Inside"


class TestEntityQuery:
    """Composition and materialisation of query handles."""

    @pytest.mark.asyncio
    async def test_composition_is_immutable(self, data_context, seed_category):
        for i, price in enumerate(("10.00", "20.00", "30.00")):
            data_context.create(Product(name=f"Slipmat {i}", price=Decimal(price), category_id=seed_category.id))
        await data_context.save()

        base = data_context.get_data(Product)
        cheap = base.where(Product.price < Decimal("25.00"))

        assert await base.count() == 3
        assert await cheap.count() == 2

    @pytest.mark.asyncio
    async def test_order_limit_offset_and_page(self, data_context, seed_category):
        for i in range(5):
            data_context.create(Product(name=f"Record {i}", price=Decimal("15.00"), category_id=seed_category.id))
        await data_context.save()

        query = data_context.get_data(Product).order_by(Product.name)
        first = await query.first()
        assert first.name == "Record 0"

        names = [p.name for p in await query.offset(1).limit(2).all()]
        assert names == ["Record 1", "Record 2"]

        items, total = await query.page(offset=4, limit=2)
        assert [p.name for p in items] == ["Record 4"]
        assert total == 5

    @pytest.mark.asyncio
    async def test_count_ignores_paging(self, data_context, seed_category):
        for i in range(3):
            data_context.create(Product(name=f"Bag {i}", price=Decimal("5.00"), category_id=seed_category.id))
        await data_context.save()

        assert await data_context.get_data(Product).limit(1).offset(1).count() == 3

    @pytest.mark.asyncio
    async def test_one_or_none(self, data_context, seed_category):
        assert await data_context.get_data(Product).one_or_none() is None

        data_context.create(Product(name="Only", price=Decimal("1.00"), category_id=seed_category.id))
        await data_context.save()
        assert (await data_context.get_data(Product).one_or_none()).name == "Only"

    @pytest.mark.asyncio
    async def test_statement_carries_bypass_option(self, data_context):
        filtered = data_context.get_data(Product).statement
        bypass = data_context.get_data(Product, ignore_query_filters=True).statement

        assert filtered.get_execution_options().get("ignore_query_filters") is None
        assert bypass.get_execution_options()["ignore_query_filters"] is True


class TestSaveFailures:
    """A failed save rolls back and surfaces the store error unchanged."""

    @pytest.mark.asyncio
    async def test_constraint_violation_surfaces_and_rolls_back(self, data_context, seed_category):
        data_context.create(Product(name="Free money", price=Decimal("-1.00"), category_id=seed_category.id))

        with pytest.raises(IntegrityError):
            await data_context.save()

        data_context.create(Category(name="After failure"))
        await data_context.save()
        assert await data_context.exists(Category, Category.name == "After failure")

    @pytest.mark.asyncio
    async def test_required_column_violation(self, data_context):
        data_context.create(Category(name=None))

        with pytest.raises(IntegrityError):
            await data_context.save()


class TestLifecycle:
    """Scenario: create, read, update and delete one product."""

    @pytest.mark.asyncio
    async def test_create_read_update_softdelete(self, session_factory, clock, seed_category):
        async with DataContext(
            session_factory(), strategy=NonRetryingExecutionStrategy(), clock=clock
        ) as ctx:
            t0 = clock.advance(seconds=1)
            product = Product(name=" Vinyl ", price=Decimal("12.50"), category_id=seed_category.id)
            ctx.create(product)
            await ctx.save()

            stored = await ctx.get(Product, product.id)
            assert stored.name == "Vinyl"
            assert stored.creation_date == t0
            assert stored.updated_date is None
            assert stored.is_deleted is False

            t1 = clock.advance(seconds=1)
            product.name = "CD"
            await ctx.save()
            assert (await ctx.get(Product, product.id)).updated_date == t1

            t2 = clock.advance(seconds=1)
            ctx.delete(product)
            await ctx.save()

            assert await ctx.get(Product, product.id) is None
            assert await ctx.exists(Product, product.id) is False
            rows = await (
                ctx.get_data(Product, ignore_query_filters=True)
                .where(Product.id == product.id)
                .all()
            )
            assert len(rows) == 1
            assert rows[0].is_deleted is True
            assert rows[0].deleted_date == t2
