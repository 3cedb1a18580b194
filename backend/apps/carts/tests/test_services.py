import asyncio
import unittest

from apps.carts.services import CartService
from apps.catalog.tests.factories import make_product
from apps.common.notifications import CollectingNotificationSink, Severity

from .fakes import FakeCartItemRepository, StubCartRow

USER_ID = 7


class CartServiceTestCase(unittest.IsolatedAsyncioTestCase):
    enforce_stock_limit = True

    def setUp(self):
        self.repo = FakeCartItemRepository()
        self.notifier = CollectingNotificationSink()
        self.service = CartService(
            self.repo, self.notifier, enforce_stock_limit=self.enforce_stock_limit
        )

    async def seed(self, **quantities):
        for product_id, quantity in quantities.items():
            self.repo.store[(USER_ID, product_id)] = quantity
        await self.service.refresh(USER_ID)


class CartRefreshTests(CartServiceTestCase):
    async def test_refresh_rebuilds_index_for_user(self):
        self.repo.store[(USER_ID, "p-1")] = 2
        self.repo.store[(99, "p-2")] = 4
        index, error = await self.service.refresh(USER_ID)
        self.assertIsNone(error)
        self.assertEqual(index, {"p-1": 2})
        self.assertEqual(self.service.get_quantity("p-1"), 2)
        self.assertEqual(self.service.get_quantity("p-2"), 0)

    async def test_refresh_replaces_index_wholesale(self):
        await self.seed(**{"p-1": 2})
        del self.repo.store[(USER_ID, "p-1")]
        self.repo.store[(USER_ID, "p-3")] = 1
        await self.service.refresh(USER_ID)
        self.assertEqual(self.service.index, {"p-3": 1})

    async def test_refresh_skips_non_positive_rows(self):
        async def rows(user_id):
            return [StubCartRow("p-1", 0), StubCartRow("p-2", 3)]

        self.repo.list_for_user = rows
        index, _ = await self.service.refresh(USER_ID)
        self.assertEqual(index, {"p-2": 3})

    async def test_refresh_failure_keeps_previous_index(self):
        await self.seed(**{"p-1": 2})
        self.repo.fail_reads = True
        index, error = await self.service.refresh(USER_ID)
        self.assertIsNone(index)
        self.assertEqual(error[0], "STORE_READ_FAILURE")
        self.assertEqual(self.service.index, {"p-1": 2})
        notes = self.notifier.drain()
        self.assertEqual(
            [(n.title, n.message, n.severity) for n in notes],
            [("Error", "Failed to load cart", Severity.ERROR)],
        )

    async def test_refresh_requires_user(self):
        index, error = await self.service.refresh(None)
        self.assertIsNone(index)
        self.assertEqual(error[0], "UNAUTHENTICATED")


class CartAddTests(CartServiceTestCase):
    async def test_signed_out_add_prompts_sign_in_without_writing(self):
        product = make_product("p-1", stock_quantity=5)
        quantity, error = await self.service.add(None, product, 0)
        self.assertIsNone(quantity)
        self.assertEqual(error[0], "UNAUTHENTICATED")
        self.assertEqual(self.repo.writes, [])
        notes = self.notifier.drain()
        self.assertEqual(notes[0].title, "Please sign in")
        self.assertEqual(
            notes[0].message, "You need to be logged in to add items to cart"
        )
        self.assertIs(notes[0].severity, Severity.ERROR)

    async def test_add_upserts_next_quantity_and_notifies(self):
        product = make_product("p-1", name="Red Shirt", stock_quantity=5)
        quantity, error = await self.service.add(USER_ID, product, 0)
        self.assertIsNone(error)
        self.assertEqual(quantity, 1)
        self.assertEqual(self.repo.writes, [("upsert", "p-1", 1)])
        self.assertEqual(self.service.index, {"p-1": 1})
        notes = self.notifier.drain()
        self.assertEqual(notes[0].title, "Added to cart")
        self.assertEqual(notes[0].message, "Red Shirt has been added to your cart")
        self.assertIs(notes[0].severity, Severity.INFO)

    async def test_add_overwrites_existing_row(self):
        product = make_product("p-1", stock_quantity=5)
        await self.seed(**{"p-1": 2})
        quantity, error = await self.service.add(USER_ID, product, 2)
        self.assertIsNone(error)
        self.assertEqual(quantity, 3)
        self.assertEqual(self.repo.store[(USER_ID, "p-1")], 3)

    async def test_add_rejects_out_of_stock_product(self):
        product = make_product("p-1", stock_quantity=0)
        quantity, error = await self.service.add(USER_ID, product, 0)
        self.assertIsNone(quantity)
        self.assertEqual(error[0], "STOCK_LIMIT_EXCEEDED")
        self.assertEqual(self.repo.writes, [])

    async def test_add_write_failure_notifies_and_keeps_index(self):
        product = make_product("p-1", stock_quantity=5)
        await self.seed(**{"p-2": 1})
        self.repo.fail_writes = True
        quantity, error = await self.service.add(USER_ID, product, 0)
        self.assertIsNone(quantity)
        self.assertEqual(error[0], "STORE_WRITE_FAILURE")
        self.assertEqual(self.service.index, {"p-2": 1})
        self.assertFalse(self.service.is_pending("p-1"))
        notes = self.notifier.drain()
        self.assertEqual(len(notes), 1)
        self.assertEqual(notes[0].title, "Error")
        self.assertEqual(notes[0].message, "Failed to add item to cart")


class CartSetQuantityTests(CartServiceTestCase):
    async def test_zero_deletes_entry(self):
        product = make_product("p-1", stock_quantity=1)
        await self.seed(**{"p-1": 1})
        quantity, error = await self.service.set_quantity(USER_ID, product, 0)
        self.assertIsNone(error)
        self.assertEqual(quantity, 0)
        self.assertNotIn((USER_ID, "p-1"), self.repo.store)
        self.assertEqual(self.service.get_quantity("p-1"), 0)
        self.assertNotIn("p-1", self.service.index)

    async def test_at_stock_increment_is_disabled_and_decrement_deletes(self):
        product = make_product("p-1", stock_quantity=1)
        await self.seed(**{"p-1": 1})
        controls = self.service.controls(product)
        self.assertFalse(controls.can_increment)
        self.assertTrue(controls.can_decrement)

        quantity, error = await self.service.decrement(USER_ID, product)
        self.assertIsNone(error)
        self.assertEqual(quantity, 0)
        self.assertEqual(self.repo.writes, [("delete", "p-1", 0)])
        self.assertEqual(self.service.get_quantity("p-1"), 0)

    async def test_increment_above_stock_is_rejected(self):
        product = make_product("p-1", stock_quantity=1)
        await self.seed(**{"p-1": 1})
        quantity, error = await self.service.increment(USER_ID, product)
        self.assertIsNone(quantity)
        self.assertEqual(error[0], "STOCK_LIMIT_EXCEEDED")
        self.assertEqual(error[2]["stock"], 1)
        self.assertEqual(self.repo.writes, [])

    async def test_decrement_allowed_when_stock_dropped_below_quantity(self):
        product = make_product("p-1", stock_quantity=1)
        await self.seed(**{"p-1": 3})
        quantity, error = await self.service.decrement(USER_ID, product)
        self.assertIsNone(error)
        self.assertEqual(quantity, 2)

    async def test_decrement_at_zero_is_noop(self):
        product = make_product("p-1", stock_quantity=3)
        quantity, error = await self.service.decrement(USER_ID, product)
        self.assertEqual((quantity, error), (0, None))
        self.assertEqual(self.repo.writes, [])

    async def test_negative_quantity_is_invalid(self):
        product = make_product("p-1", stock_quantity=3)
        quantity, error = await self.service.set_quantity(USER_ID, product, -1)
        self.assertIsNone(quantity)
        self.assertEqual(error[0], "INVALID_QUANTITY")

    async def test_signed_out_update_is_rejected_silently(self):
        product = make_product("p-1", stock_quantity=3)
        _, error = await self.service.set_quantity(None, product, 2)
        self.assertEqual(error[0], "UNAUTHENTICATED")
        self.assertEqual(self.notifier.pending, [])

    async def test_write_failure_notifies_and_keeps_index(self):
        product = make_product("p-1", stock_quantity=5)
        await self.seed(**{"p-1": 2})
        self.repo.fail_writes = True
        quantity, error = await self.service.set_quantity(USER_ID, product, 3)
        self.assertIsNone(quantity)
        self.assertEqual(error[0], "STORE_WRITE_FAILURE")
        self.assertEqual(self.service.index, {"p-1": 2})
        notes = self.notifier.drain()
        self.assertEqual([(n.title, n.message) for n in notes], [("Error", "Failed to update cart")])

    async def test_remove_deletes_entry(self):
        product = make_product("p-1", stock_quantity=5)
        await self.seed(**{"p-1": 4})
        quantity, _ = await self.service.remove(USER_ID, product)
        self.assertEqual(quantity, 0)
        self.assertEqual(self.service.index, {})

    async def test_racing_updates_leave_consistent_index(self):
        product = make_product("p-1", stock_quantity=5)
        await self.seed(**{"p-1": 1})
        self.repo.gates = {2: asyncio.Event(), 3: asyncio.Event()}

        first = asyncio.create_task(self.service.set_quantity(USER_ID, product, 2))
        second = asyncio.create_task(self.service.set_quantity(USER_ID, product, 3))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        self.assertTrue(self.service.is_pending("p-1"))
        self.assertTrue(self.service.controls(product).pending)

        # the later request resolves first
        self.repo.gates[3].set()
        self.assertEqual(await second, (3, None))
        self.assertTrue(self.service.is_pending("p-1"))
        self.repo.gates[2].set()
        quantity, error = await first

        self.assertIsNone(error)
        self.assertIn(quantity, (2, 3))
        stored = self.repo.store[(USER_ID, "p-1")]
        self.assertEqual(self.service.index, {"p-1": stored})
        self.assertFalse(self.service.is_pending("p-1"))


class CartSetQuantityWithoutStockLimitTests(CartServiceTestCase):
    enforce_stock_limit = False

    async def test_quantity_above_stock_is_written(self):
        product = make_product("p-1", stock_quantity=1)
        await self.seed(**{"p-1": 1})
        quantity, error = await self.service.set_quantity(USER_ID, product, 4)
        self.assertIsNone(error)
        self.assertEqual(quantity, 4)


class CartControlsTests(CartServiceTestCase):
    async def test_absent_in_stock_product_can_be_added(self):
        controls = self.service.controls(make_product("p-1", stock_quantity=2))
        self.assertTrue(controls.can_add)
        self.assertFalse(controls.can_increment)
        self.assertFalse(controls.can_decrement)
        self.assertFalse(controls.pending)

    async def test_out_of_stock_product_cannot_be_added(self):
        controls = self.service.controls(make_product("p-1", stock_quantity=0))
        self.assertFalse(controls.can_add)

    async def test_in_cart_below_stock_allows_both_directions(self):
        product = make_product("p-1", stock_quantity=3)
        await self.seed(**{"p-1": 2})
        controls = self.service.controls(product)
        self.assertFalse(controls.can_add)
        self.assertTrue(controls.can_increment)
        self.assertTrue(controls.can_decrement)

    async def test_explicit_quantity_overrides_index(self):
        controls = self.service.controls(make_product("p-1", stock_quantity=3), quantity=3)
        self.assertFalse(controls.can_increment)
        self.assertTrue(controls.can_decrement)


class CartConfirmationTests(CartServiceTestCase):
    async def test_write_confirmed_when_follow_up_refresh_fails(self):
        product = make_product("p-1", name="Red Shirt", stock_quantity=5)
        await self.seed(**{"p-2": 1})
        self.repo.fail_reads = True
        quantity, error = await self.service.add(USER_ID, product, 0)
        self.assertIsNone(error)
        self.assertEqual(quantity, 1)
        self.assertEqual(self.repo.store[(USER_ID, "p-1")], 1)
        # the index is only rebuilt by a successful refresh
        self.assertEqual(self.service.index, {"p-2": 1})
        titles = [(n.title, n.message) for n in self.notifier.drain()]
        self.assertEqual(
            titles,
            [
                ("Error", "Failed to load cart"),
                ("Added to cart", "Red Shirt has been added to your cart"),
            ],
        )

    async def test_product_stays_pending_until_refresh_lands(self):
        product = make_product("p-1", stock_quantity=5)
        await self.seed(**{"p-1": 1})
        self.repo.read_gate = asyncio.Event()
        task = asyncio.create_task(self.service.set_quantity(USER_ID, product, 2))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        self.assertEqual(self.repo.store[(USER_ID, "p-1")], 2)
        self.assertTrue(self.service.is_pending("p-1"))
        self.assertFalse(self.service.controls(product).can_decrement)

        self.repo.read_gate.set()
        self.assertEqual(await task, (2, None))
        self.assertFalse(self.service.is_pending("p-1"))
        self.assertTrue(self.service.controls(product).can_decrement)


class CartSignedOutTests(CartServiceTestCase):
    async def test_every_mutation_requires_user(self):
        product = make_product("p-1", stock_quantity=3)
        operations = {
            "increment": self.service.increment,
            "decrement": self.service.decrement,
            "remove": self.service.remove,
        }
        for name, operation in operations.items():
            with self.subTest(operation=name):
                quantity, error = await operation(None, product)
                self.assertIsNone(quantity)
                self.assertEqual(error[0], "UNAUTHENTICATED")
        self.assertEqual(self.repo.writes, [])
