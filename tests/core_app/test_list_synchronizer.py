from __future__ import annotations

import asyncio

from medstock_client.exceptions import AuthError
from medstock_client.models import Medicine

from fake_gateway import FakeGateway, make_stock, server_error
from medstock_app.sync.list_synchronizer import StockListSynchronizer, SyncError, SyncStatus


def _stocks(count: int) -> list:
    return [make_stock(index) for index in range(1, count + 1)]


def _ids(synchronizer: StockListSynchronizer) -> list[int]:
    return [stock.id for stock in synchronizer.items]


def test_pages_accumulate_until_total_is_reached() -> None:
    gateway = FakeGateway(_stocks(25))
    synchronizer = StockListSynchronizer(gateway, page_size=10)

    async def scenario() -> list[int]:
        counts = []
        await synchronizer.reset_and_load_first_page()
        counts.append(len(synchronizer.items))
        await synchronizer.load_next_page()
        counts.append(len(synchronizer.items))
        await synchronizer.load_next_page()
        counts.append(len(synchronizer.items))
        assert await synchronizer.load_next_page() is False
        return counts

    assert asyncio.run(scenario()) == [10, 20, 25]
    assert synchronizer.total == 25
    assert synchronizer.has_more is False
    assert synchronizer.page_cursor == 4
    assert gateway.calls_for("list") == [1, 2, 3]
    assert _ids(synchronizer) == list(range(1, 26))


def test_exact_multiple_of_page_size_stops_after_last_page() -> None:
    gateway = FakeGateway(_stocks(20))
    synchronizer = StockListSynchronizer(gateway, page_size=10)

    async def scenario() -> None:
        await synchronizer.reset_and_load_first_page()
        await synchronizer.load_next_page()

    asyncio.run(scenario())
    assert len(synchronizer.items) == 20
    assert synchronizer.has_more is False


def test_legacy_list_without_total_uses_page_fullness() -> None:
    gateway = FakeGateway(_stocks(15), legacy=True)
    synchronizer = StockListSynchronizer(gateway, page_size=10)

    async def scenario() -> None:
        await synchronizer.reset_and_load_first_page()
        assert synchronizer.total is None
        assert synchronizer.has_more is True
        await synchronizer.load_next_page()

    asyncio.run(scenario())
    assert len(synchronizer.items) == 15
    assert synchronizer.has_more is False


def test_empty_account_has_nothing_more() -> None:
    synchronizer = StockListSynchronizer(FakeGateway([]), page_size=10)

    asyncio.run(synchronizer.reset_and_load_first_page())

    assert synchronizer.items == []
    assert synchronizer.total == 0
    assert synchronizer.has_more is False
    assert synchronizer.status is SyncStatus.IDLE


def test_overlapping_pages_never_duplicate_ids() -> None:
    gateway = FakeGateway(_stocks(25))
    gateway.page_overrides[2] = [make_stock(9), make_stock(10), make_stock(11), make_stock(11)]
    synchronizer = StockListSynchronizer(gateway, page_size=10)

    async def scenario() -> None:
        await synchronizer.reset_and_load_first_page()
        await synchronizer.load_next_page()

    asyncio.run(scenario())
    assert _ids(synchronizer) == list(range(1, 12))
    assert len(set(_ids(synchronizer))) == len(synchronizer.items)


def test_concurrent_triggers_issue_a_single_request() -> None:
    gateway = FakeGateway(_stocks(25))
    synchronizer = StockListSynchronizer(gateway, page_size=10)

    async def scenario() -> tuple[bool, bool, bool]:
        await synchronizer.reset_and_load_first_page()
        gate = gateway.gate("list:2")
        first = asyncio.create_task(synchronizer.load_next_page())
        await asyncio.sleep(0)
        assert synchronizer.is_busy
        assert synchronizer.status is SyncStatus.LOADING_MORE
        second = await synchronizer.load_next_page()
        sentinel = await synchronizer.on_sentinel_visible()
        gate.set()
        return await first, second, sentinel

    assert asyncio.run(scenario()) == (True, False, False)
    assert gateway.calls_for("list") == [1, 2]
    assert len(synchronizer.items) == 20


def test_dispose_during_load_discards_the_response() -> None:
    gateway = FakeGateway(_stocks(5))
    synchronizer = StockListSynchronizer(gateway, page_size=10)
    snapshots = []
    synchronizer.subscribe(snapshots.append)

    async def scenario() -> bool:
        gate = gateway.gate("list:1")
        task = asyncio.create_task(synchronizer.reset_and_load_first_page())
        await asyncio.sleep(0)
        synchronizer.dispose()
        gate.set()
        return await task

    assert asyncio.run(scenario()) is False
    assert synchronizer.items == []
    assert synchronizer.status is SyncStatus.DISPOSED
    assert [snapshot.status for snapshot in snapshots] == [SyncStatus.LOADING_FIRST_PAGE]


def test_disposed_synchronizer_ignores_everything() -> None:
    gateway = FakeGateway(_stocks(5))
    synchronizer = StockListSynchronizer(gateway, page_size=10)
    synchronizer.dispose()

    async def scenario() -> list[object]:
        return [
            await synchronizer.reset_and_load_first_page(),
            await synchronizer.load_next_page(),
            await synchronizer.delete(1),
        ]

    assert asyncio.run(scenario()) == [False, False, False]
    assert gateway.calls == []


def test_reset_supersedes_an_in_flight_page() -> None:
    gateway = FakeGateway(_stocks(25))
    synchronizer = StockListSynchronizer(gateway, page_size=10)

    async def scenario() -> bool:
        await synchronizer.reset_and_load_first_page()
        gate = gateway.gate("list:2")
        pending = asyncio.create_task(synchronizer.load_next_page())
        await asyncio.sleep(0)
        await synchronizer.reset_and_load_first_page()
        gate.set()
        return await pending

    assert asyncio.run(scenario()) is False
    assert _ids(synchronizer) == list(range(1, 11))
    assert synchronizer.page_cursor == 2
    assert synchronizer.status is SyncStatus.IDLE


def test_page_requested_twice_across_a_reset_is_applied_once() -> None:
    # The busy flag and the generation counter keep the stale-page check from
    # firing here: the older page 2 is dropped as superseded before it is compared.
    gateway = FakeGateway(_stocks(25))
    synchronizer = StockListSynchronizer(gateway, page_size=10)

    async def scenario() -> tuple[bool, bool]:
        await synchronizer.reset_and_load_first_page()
        gate = gateway.gate("list:2")
        old = asyncio.create_task(synchronizer.load_next_page())
        await asyncio.sleep(0)
        await synchronizer.reset_and_load_first_page()
        new = asyncio.create_task(synchronizer.load_next_page())
        await asyncio.sleep(0)
        gate.set()
        return await old, await new

    assert asyncio.run(scenario()) == (False, True)
    assert _ids(synchronizer) == list(range(1, 21))
    assert synchronizer.page_cursor == 3
    assert gateway.calls_for("list") == [1, 2, 1, 2]


def test_sentinel_does_nothing_before_first_page() -> None:
    gateway = FakeGateway(_stocks(25))
    synchronizer = StockListSynchronizer(gateway, page_size=10)

    assert asyncio.run(synchronizer.on_sentinel_visible()) is False
    assert gateway.calls == []


def test_sentinel_loads_the_next_page() -> None:
    gateway = FakeGateway(_stocks(25))
    synchronizer = StockListSynchronizer(gateway, page_size=10)

    async def scenario() -> bool:
        await synchronizer.reset_and_load_first_page()
        return await synchronizer.on_sentinel_visible()

    assert asyncio.run(scenario()) is True
    assert len(synchronizer.items) == 20


def test_first_page_failure_leaves_an_empty_list_in_error() -> None:
    gateway = FakeGateway(_stocks(5))
    gateway.failures["list"] = server_error()
    errors: list[SyncError] = []
    synchronizer = StockListSynchronizer(gateway, page_size=10, on_error=errors.append)

    async def scenario() -> tuple[bool, bool]:
        loaded = await synchronizer.reset_and_load_first_page()
        return loaded, await synchronizer.on_sentinel_visible()

    assert asyncio.run(scenario()) == (False, False)
    assert synchronizer.items == []
    assert synchronizer.status is SyncStatus.ERROR
    assert synchronizer.is_busy is False
    assert errors == [synchronizer.last_error]
    assert errors[0].message == "Failed to load stocks."
    assert gateway.calls_for("list") == [1]


def test_next_page_failure_keeps_loaded_items_and_can_retry() -> None:
    gateway = FakeGateway(_stocks(25))
    synchronizer = StockListSynchronizer(gateway, page_size=10)

    async def scenario() -> tuple[bool, bool]:
        await synchronizer.reset_and_load_first_page()
        gateway.failures["list"] = server_error()
        failed = await synchronizer.load_next_page()
        assert synchronizer.status is SyncStatus.ERROR
        assert len(synchronizer.items) == 10
        del gateway.failures["list"]
        return failed, await synchronizer.load_next_page()

    assert asyncio.run(scenario()) == (False, True)
    assert len(synchronizer.items) == 20
    assert synchronizer.last_error is None


def test_auth_failure_is_left_to_the_session_layer() -> None:
    gateway = FakeGateway(_stocks(5))
    gateway.failures["list"] = AuthError(code="UNAUTHORIZED", message="expired", details=None, status_code=401)
    errors: list[SyncError] = []
    synchronizer = StockListSynchronizer(gateway, page_size=10, on_error=errors.append)

    asyncio.run(synchronizer.reset_and_load_first_page())

    assert errors == []
    assert synchronizer.last_error is None
    assert synchronizer.status is SyncStatus.IDLE


def test_delete_removes_synchronously_then_rolls_back_on_failure() -> None:
    gateway = FakeGateway(_stocks(3))
    gateway.failures["delete"] = server_error()
    errors: list[SyncError] = []
    synchronizer = StockListSynchronizer(gateway, page_size=10, on_error=errors.append)

    async def scenario() -> bool:
        await synchronizer.reset_and_load_first_page()
        pending = synchronizer.delete(2)
        assert _ids(synchronizer) == [1, 3]
        assert synchronizer.total == 2
        return await pending

    assert asyncio.run(scenario()) is False
    assert _ids(synchronizer) == [1, 2, 3]
    assert synchronizer.total == 3
    assert [error.operation for error in errors] == ["delete"]
    assert errors[0].message == "Failed to delete stock."


def test_delete_success_keeps_the_stock_gone() -> None:
    gateway = FakeGateway(_stocks(3))
    synchronizer = StockListSynchronizer(gateway, page_size=10)

    async def scenario() -> bool:
        await synchronizer.reset_and_load_first_page()
        return await synchronizer.delete(2)

    assert asyncio.run(scenario()) is True
    assert _ids(synchronizer) == [1, 3]
    assert gateway.calls_for("delete") == [2]
    assert [stock.id for stock in gateway.stocks] == [1, 3]


def test_pending_delete_is_not_resurrected_by_a_reload() -> None:
    gateway = FakeGateway(_stocks(5))
    synchronizer = StockListSynchronizer(gateway, page_size=10)

    async def scenario() -> bool:
        await synchronizer.reset_and_load_first_page()
        gate = gateway.gate("delete:3")
        pending = synchronizer.delete(3)
        confirm = asyncio.create_task(pending)
        await asyncio.sleep(0)
        await synchronizer.reset_and_load_first_page()
        assert _ids(synchronizer) == [1, 2, 4, 5]
        gate.set()
        return await confirm

    assert asyncio.run(scenario()) is True
    assert _ids(synchronizer) == [1, 2, 4, 5]


def test_failed_delete_during_next_page_restores_the_server_total() -> None:
    gateway = FakeGateway(_stocks(15))
    gateway.failures["delete"] = server_error()
    synchronizer = StockListSynchronizer(gateway, page_size=10)

    async def scenario() -> bool:
        await synchronizer.reset_and_load_first_page()
        gate = gateway.gate("delete:3")
        confirm = asyncio.create_task(synchronizer.delete(3))
        await asyncio.sleep(0)
        await synchronizer.load_next_page()
        assert (len(synchronizer.items), synchronizer.total) == (14, 14)
        gate.set()
        return await confirm

    assert asyncio.run(scenario()) is False
    assert (len(synchronizer.items), synchronizer.total, synchronizer.has_more) == (15, 15, False)
    assert _ids(synchronizer) == list(range(1, 16))


def test_create_while_first_page_loads_keeps_the_new_stock() -> None:
    gateway = FakeGateway(_stocks(3))
    gateway.page_overrides[1] = _stocks(3)
    gateway.total_overrides[1] = 3
    gateway.next_id = 7
    synchronizer = StockListSynchronizer(gateway, page_size=10)

    async def scenario() -> bool:
        gate = gateway.gate("list:1")
        loading = asyncio.create_task(synchronizer.reset_and_load_first_page())
        await asyncio.sleep(0)
        await synchronizer.create("Travel Kit")
        gate.set()
        return await loading

    assert asyncio.run(scenario()) is True
    assert _ids(synchronizer) == [7, 1, 2, 3]
    assert synchronizer.total == 4
    assert synchronizer.has_more is False


def test_rename_while_first_page_loads_shows_the_server_name() -> None:
    gateway = FakeGateway(_stocks(2))
    synchronizer = StockListSynchronizer(gateway, page_size=10)

    async def scenario() -> object:
        gate = gateway.gate("list:1")
        loading = asyncio.create_task(synchronizer.reset_and_load_first_page())
        await asyncio.sleep(0)
        renamed = await synchronizer.rename(2, "Bathroom")
        gate.set()
        await loading
        return renamed

    renamed = asyncio.run(scenario())
    assert renamed is not None
    assert renamed.name == "Bathroom"
    assert _ids(synchronizer) == [1, 2]
    assert synchronizer.get(2).name == "Bathroom"
    assert synchronizer.last_mutation_error is None


def test_mutation_errors_stay_out_of_the_load_state() -> None:
    gateway = FakeGateway(_stocks(2))
    gateway.failures["delete"] = server_error()
    synchronizer = StockListSynchronizer(gateway, page_size=10)

    async def scenario() -> None:
        await synchronizer.reset_and_load_first_page()
        await synchronizer.delete(1)
        assert synchronizer.last_mutation_error is not None
        assert synchronizer.snapshot().error is None
        await synchronizer.create("Travel Kit")

    asyncio.run(scenario())
    assert synchronizer.last_mutation_error is None
    assert synchronizer.last_error is None
    assert synchronizer.snapshot().status is SyncStatus.IDLE


def test_create_prepends_and_counts() -> None:
    gateway = FakeGateway(_stocks(3))
    gateway.next_id = 7
    synchronizer = StockListSynchronizer(gateway, page_size=10)

    async def scenario():
        await synchronizer.reset_and_load_first_page()
        return await synchronizer.create("  Travel Kit ")

    created = asyncio.run(scenario())
    assert created is not None
    assert synchronizer.items[0].id == 7
    assert synchronizer.items[0].name == "Travel Kit"
    assert synchronizer.total == 4
    assert gateway.calls_for("create") == ["Travel Kit"]


def test_create_rejects_blank_names_without_calling_the_api() -> None:
    gateway = FakeGateway([])
    errors: list[SyncError] = []
    synchronizer = StockListSynchronizer(gateway, page_size=10, on_error=errors.append)

    assert asyncio.run(synchronizer.create("   ")) is None
    assert gateway.calls_for("create") == []
    assert errors[0].message == "name: name is required"


def test_create_failure_leaves_the_list_alone() -> None:
    gateway = FakeGateway(_stocks(2))
    gateway.failures["create"] = server_error()
    synchronizer = StockListSynchronizer(gateway, page_size=10)

    async def scenario():
        await synchronizer.reset_and_load_first_page()
        return await synchronizer.create("Travel Kit")

    assert asyncio.run(scenario()) is None
    assert _ids(synchronizer) == [1, 2]
    assert synchronizer.total == 2
    assert synchronizer.last_error is None
    assert synchronizer.last_mutation_error is not None
    assert synchronizer.last_mutation_error.message == "Failed to create stock."
    assert synchronizer.snapshot().status is SyncStatus.IDLE


def test_rename_updates_in_place_and_survives_failure() -> None:
    gateway = FakeGateway(_stocks(3))
    synchronizer = StockListSynchronizer(gateway, page_size=10)

    async def scenario() -> None:
        await synchronizer.reset_and_load_first_page()
        await synchronizer.rename(2, "Bathroom")
        gateway.failures["rename"] = server_error()
        await synchronizer.rename(3, "Kitchen")

    asyncio.run(scenario())
    assert [stock.name for stock in synchronizer.items] == ["Stock 1", "Bathroom", "Stock 3"]
    assert synchronizer.last_mutation_error is not None
    assert synchronizer.last_mutation_error.operation == "rename"


def test_open_detail_fetches_fresh_and_updates_the_entry() -> None:
    gateway = FakeGateway(_stocks(3))
    synchronizer = StockListSynchronizer(gateway, page_size=10)

    async def scenario():
        await synchronizer.reset_and_load_first_page()
        gateway.stocks[0] = make_stock(1, medicines=[Medicine(id=50, name="Aspirin", dose=100, quantity=3)])
        return await synchronizer.open_detail(1)

    detail = asyncio.run(scenario())
    assert detail is not None
    assert detail.medicine_count == 1
    assert synchronizer.get(1).medicine_count == 1
    assert gateway.calls_for("get") == [1]


def test_filtered_matches_names_case_insensitively() -> None:
    stocks = [make_stock(1, "Home"), make_stock(2, "Travel Kit"), make_stock(3, "Office")]
    synchronizer = StockListSynchronizer(FakeGateway(stocks), page_size=10)

    asyncio.run(synchronizer.reset_and_load_first_page())

    assert [stock.id for stock in synchronizer.filtered("kit")] == [2]
    assert len(synchronizer.filtered("  ")) == 3


def test_subscribers_see_loading_then_idle() -> None:
    synchronizer = StockListSynchronizer(FakeGateway(_stocks(2)), page_size=10)
    snapshots = []
    unsubscribe = synchronizer.subscribe(snapshots.append)

    asyncio.run(synchronizer.reset_and_load_first_page())
    unsubscribe()
    asyncio.run(synchronizer.reset_and_load_first_page())

    assert [snapshot.status for snapshot in snapshots] == [SyncStatus.LOADING_FIRST_PAGE, SyncStatus.IDLE]
    assert snapshots[0].is_loading
    assert len(snapshots[1].items) == 2
