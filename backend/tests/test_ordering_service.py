from __future__ import annotations

import uuid
from types import SimpleNamespace
from typing import Any, Dict, List, Mapping, Optional

import pytest

from builder_factories import create_component_row, create_page_row, tenant_with_member, create_website
from sitebuilder.core.errors import (
    InternalError,
    InvalidReorder,
    OrderKeyCollision,
    PlanLimitExceeded,
    ResourceNotFound,
    SelfReferential,
    SiblingNotFound,
    WrongTenant,
)
from sitebuilder.core.order_keys import key_between
from sitebuilder.core.plan_limits import get_limits_for_plan
from sitebuilder.services.components import component_manager
from sitebuilder.services.ordering import END, START, After, Before, OrderedCollectionManager
from sitebuilder.services.pages import page_manager


class InMemoryStore:
    """
    Sibling store kept in a dict. ``steal_next`` simulates another editor
    grabbing the exact key we are about to write, that many times in a row.
    """

    kind = "component"
    parent_kind = "page"

    def __init__(self, tenant_by_parent: Dict[uuid.UUID, uuid.UUID]) -> None:
        self.tenant_by_parent = tenant_by_parent
        self.rows: Dict[uuid.UUID, SimpleNamespace] = {}
        self.steal_next = 0
        self.writes: List[uuid.UUID] = []

    async def get(self, entity_id):
        return self.rows.get(entity_id)

    async def list_by_parent(self, parent_id) -> List[Any]:
        return [r for r in self.rows.values() if r.parent_id == parent_id]

    async def count_by_parent(self, parent_id) -> int:
        return len(await self.list_by_parent(parent_id))

    async def parent_tenant_id(self, parent_id) -> Optional[uuid.UUID]:
        return self.tenant_by_parent.get(parent_id)

    def _take(self, parent_id, order_key):
        if self.steal_next:
            self.steal_next -= 1
            intruder = SimpleNamespace(id=uuid.uuid4(), parent_id=parent_id, order_key=order_key)
            self.rows[intruder.id] = intruder
        if any(r.parent_id == parent_id and r.order_key == order_key for r in self.rows.values()):
            raise OrderKeyCollision(parent_id, order_key)

    async def insert(self, parent_id, order_key: str, payload: Mapping[str, Any]):
        self._take(parent_id, order_key)
        row = SimpleNamespace(id=uuid.uuid4(), parent_id=parent_id, order_key=order_key, **payload)
        self.rows[row.id] = row
        self.writes.append(row.id)
        return row

    async def update_key(self, entity_id, order_key: str, parent_id=None):
        row = self.rows[entity_id]
        target = parent_id if parent_id is not None else row.parent_id
        self._take(target, order_key)
        row.order_key = order_key
        row.parent_id = target
        self.writes.append(entity_id)
        return row

    async def delete(self, entity_id) -> None:
        self.rows.pop(entity_id)


class FixedPlan:
    def __init__(self, plan: str = "starter") -> None:
        self.plan = plan

    async def get_plan_limits(self, tenant_id):
        return get_limits_for_plan(self.plan)


TENANT_A = uuid.uuid4()
TENANT_B = uuid.uuid4()
PAGE_1 = uuid.uuid4()
PAGE_2 = uuid.uuid4()
PAGE_OTHER_TENANT = uuid.uuid4()


@pytest.fixture()
def store():
    return InMemoryStore({PAGE_1: TENANT_A, PAGE_2: TENANT_A, PAGE_OTHER_TENANT: TENANT_B})


@pytest.fixture()
def manager(store):
    return OrderedCollectionManager(store, FixedPlan(), "max_components_per_page", max_attempts=3)


async def keys_of(manager, parent_id) -> List[str]:
    return [e.order_key for e in await manager.list_ordered(parent_id).fetch()]


# ---------------------------------------------------------
# Placement
# ---------------------------------------------------------
@pytest.mark.asyncio
async def test_insert_at_start_twice_then_before(manager):
    first = await manager.insert(PAGE_1, {"component_type": "hero"}, START)
    second = await manager.insert(PAGE_1, {"component_type": "navbar"}, START)

    k1, k2 = await keys_of(manager, PAGE_1)
    assert k1 < k2
    assert (k1, k2) == (second.order_key, first.order_key)

    third = await manager.insert(PAGE_1, {"component_type": "cta"}, Before(first.id))
    assert k1 < third.order_key < k2

    ordered = [e.id for e in await manager.list_ordered(PAGE_1).fetch()]
    assert ordered == [second.id, third.id, first.id]


@pytest.mark.asyncio
async def test_insert_end_and_after(manager):
    a = await manager.insert(PAGE_1, {}, END)
    b = await manager.insert(PAGE_1, {}, END)
    c = await manager.insert(PAGE_1, {}, After(a.id))

    assert a.order_key == "i"
    assert [e.id async for e in manager.list_ordered(PAGE_1)] == [a.id, c.id, b.id]


@pytest.mark.asyncio
async def test_insert_writes_only_the_new_row(manager, store):
    rows = [await manager.insert(PAGE_1, {}, END) for _ in range(5)]
    before = {r.id: r.order_key for r in rows}
    store.writes.clear()

    new = await manager.insert(PAGE_1, {}, After(rows[1].id))

    assert store.writes == [new.id]
    assert {r.id: r.order_key for r in rows} == before


@pytest.mark.asyncio
async def test_unknown_sibling(manager):
    await manager.insert(PAGE_1, {}, END)
    with pytest.raises(SiblingNotFound):
        await manager.insert(PAGE_1, {}, Before(uuid.uuid4()))


@pytest.mark.asyncio
async def test_sibling_under_another_parent_is_not_a_sibling(manager):
    elsewhere = await manager.insert(PAGE_2, {}, END)
    with pytest.raises(SiblingNotFound):
        await manager.insert(PAGE_1, {}, After(elsewhere.id))


@pytest.mark.asyncio
async def test_insert_under_missing_parent(manager):
    with pytest.raises(ResourceNotFound):
        await manager.insert(uuid.uuid4(), {}, END)


# ---------------------------------------------------------
# Move
# ---------------------------------------------------------
@pytest.mark.asyncio
async def test_move_only_rewrites_the_moved_row(manager, store):
    a, b, c, d = [await manager.insert(PAGE_1, {}, END) for _ in range(4)]
    others = {x.id: x.order_key for x in (a, b, c)}
    store.writes.clear()

    moved = await manager.move(d.id, Before(a.id))

    assert store.writes == [d.id]
    assert moved.order_key < a.order_key
    assert {x.id: x.order_key for x in (a, b, c)} == others
    assert [e.id for e in await manager.list_ordered(PAGE_1).fetch()] == [d.id, a.id, b.id, c.id]


@pytest.mark.asyncio
async def test_move_to_start_and_end(manager):
    a, b, c = [await manager.insert(PAGE_1, {}, END) for _ in range(3)]

    await manager.move(c.id, START)
    assert [e.id for e in await manager.list_ordered(PAGE_1).fetch()] == [c.id, a.id, b.id]

    await manager.move(c.id, END)
    assert [e.id for e in await manager.list_ordered(PAGE_1).fetch()] == [a.id, b.id, c.id]


@pytest.mark.asyncio
async def test_move_relative_to_itself(manager):
    a = await manager.insert(PAGE_1, {}, END)
    with pytest.raises(SelfReferential):
        await manager.move(a.id, After(a.id))


@pytest.mark.asyncio
async def test_move_to_another_parent_of_the_same_tenant(manager):
    a = await manager.insert(PAGE_1, {}, END)
    x = await manager.insert(PAGE_2, {}, END)

    moved = await manager.move(a.id, Before(x.id), new_parent_id=PAGE_2)

    assert moved.parent_id == PAGE_2
    assert await keys_of(manager, PAGE_1) == []
    assert [e.id for e in await manager.list_ordered(PAGE_2).fetch()] == [a.id, x.id]


@pytest.mark.asyncio
async def test_move_to_a_parent_of_another_tenant(manager):
    a = await manager.insert(PAGE_1, {}, END)
    with pytest.raises(WrongTenant):
        await manager.move(a.id, END, new_parent_id=PAGE_OTHER_TENANT)


@pytest.mark.asyncio
async def test_move_missing_entity(manager):
    with pytest.raises(ResourceNotFound):
        await manager.move(uuid.uuid4(), END)


# ---------------------------------------------------------
# Collisions
# ---------------------------------------------------------
@pytest.mark.asyncio
async def test_collision_is_retried_against_new_neighbours(manager, store):
    a = await manager.insert(PAGE_1, {}, END)
    b = await manager.insert(PAGE_1, {}, END)
    store.steal_next = 2

    c = await manager.insert(PAGE_1, {}, After(a.id))

    assert a.order_key < c.order_key < b.order_key
    keys = await keys_of(manager, PAGE_1)
    assert len(keys) == len(set(keys)) == 5  # a, b, c and the two intruders


@pytest.mark.asyncio
async def test_collisions_beyond_the_attempt_budget_become_internal_error(manager, store):
    await manager.insert(PAGE_1, {}, END)
    store.steal_next = 3

    with pytest.raises(InternalError):
        await manager.insert(PAGE_1, {}, END)


# ---------------------------------------------------------
# Bulk reorder
# ---------------------------------------------------------
@pytest.mark.asyncio
async def test_reorder_bulk_rewrites_only_what_moved(manager, store):
    rows = [await manager.insert(PAGE_1, {}, END) for _ in range(6)]
    ids = [r.id for r in rows]
    original = {r.id: r.order_key for r in rows}

    # Last one to the front: the other five already follow each other.
    target = [ids[5]] + ids[:5]
    rewritten = await manager.reorder_bulk(PAGE_1, target)

    assert [r.id for r in rewritten] == [ids[5]]
    assert [e.id for e in await manager.list_ordered(PAGE_1).fetch()] == target
    for i in ids[:5]:
        assert store.rows[i].order_key == original[i]


@pytest.mark.asyncio
async def test_reorder_bulk_full_reversal(manager):
    rows = [await manager.insert(PAGE_1, {}, END) for _ in range(5)]
    target = [r.id for r in reversed(rows)]

    rewritten = await manager.reorder_bulk(PAGE_1, target)

    assert len(rewritten) == 4
    assert [e.id for e in await manager.list_ordered(PAGE_1).fetch()] == target
    keys = await keys_of(manager, PAGE_1)
    assert len(set(keys)) == len(keys)


@pytest.mark.asyncio
async def test_reorder_bulk_same_order_is_a_no_op(manager, store):
    rows = [await manager.insert(PAGE_1, {}, END) for _ in range(3)]
    store.writes.clear()

    assert await manager.reorder_bulk(PAGE_1, [r.id for r in rows]) == []
    assert store.writes == []


@pytest.mark.asyncio
async def test_reorder_bulk_rejects_bad_lists(manager):
    a, b, c = [await manager.insert(PAGE_1, {}, END) for _ in range(3)]

    with pytest.raises(SiblingNotFound):
        await manager.reorder_bulk(PAGE_1, [a.id, b.id, uuid.uuid4()])
    with pytest.raises(InvalidReorder):
        await manager.reorder_bulk(PAGE_1, [a.id, a.id, b.id])
    with pytest.raises(InvalidReorder):
        await manager.reorder_bulk(PAGE_1, [a.id, b.id])


# ---------------------------------------------------------
# Plan limits and delete
# ---------------------------------------------------------
@pytest.mark.asyncio
async def test_plan_limit_blocks_insert(store):
    manager = OrderedCollectionManager(store, FixedPlan("starter"), "max_components_per_page", max_attempts=3)
    for i in range(25):
        store.rows[uuid.uuid4()] = SimpleNamespace(
            id=uuid.uuid4(), parent_id=PAGE_1, order_key=str(key_between(None, None)) + "1" * (i + 1)
        )

    with pytest.raises(PlanLimitExceeded) as exc_info:
        await manager.insert(PAGE_1, {}, END)

    err = exc_info.value
    assert (err.limit, err.current, err.maximum, err.upgrade_to) == ("max_components_per_page", 25, 25, "growth")


@pytest.mark.asyncio
async def test_delete_leaves_siblings_alone(manager):
    a, b, c = [await manager.insert(PAGE_1, {}, END) for _ in range(3)]
    await manager.delete(b.id)
    assert await keys_of(manager, PAGE_1) == [a.order_key, c.order_key]


# ---------------------------------------------------------
# Against the database
# ---------------------------------------------------------
@pytest.mark.asyncio
async def test_sql_component_store_scenario(db):
    tenant, _user, website = await tenant_with_member(db)
    page = await create_page_row(db, website, "i")
    manager = component_manager(db)

    first = await manager.insert(page.id, {"component_type": "hero", "props": {}}, START)
    second = await manager.insert(page.id, {"component_type": "navbar", "props": {}}, START)
    assert second.order_key < first.order_key

    third = await manager.insert(page.id, {"component_type": "cta", "props": {}}, Before(first.id))
    assert second.order_key < third.order_key < first.order_key

    listed = [c.id for c in await manager.list_ordered(page.id).fetch()]
    assert listed == [second.id, third.id, first.id]


@pytest.mark.asyncio
async def test_sql_collision_is_reported_and_retried(db):
    tenant, _user, website = await tenant_with_member(db)
    page = await create_page_row(db, website, "i")
    await create_component_row(db, page, "i")
    page_id = page.id
    manager = component_manager(db)

    with pytest.raises(OrderKeyCollision):
        await manager.store.insert(page_id, "i", {"component_type": "hero", "props": {}})

    # rollback expired the session; a normal insert still finds a free key
    placed = await manager.insert(page_id, {"component_type": "hero", "props": {}}, END)
    assert placed.order_key > "i"


@pytest.mark.asyncio
async def test_sql_page_reorder_and_cross_website_move(db):
    tenant, _user, website = await tenant_with_member(db, plan="growth")
    other_site = await create_website(db, tenant, name="Second")
    manager = page_manager(db)

    a = await create_page_row(db, website, "a", slug="/a")
    b = await create_page_row(db, website, "b", slug="/b")
    c = await create_page_row(db, website, "c", slug="/c")

    rewritten = await manager.reorder_bulk(website.id, [c.id, a.id, b.id])
    assert [p.id for p in rewritten] == [c.id]
    assert [p.id for p in await manager.list_ordered(website.id).fetch()] == [c.id, a.id, b.id]

    moved = await manager.move(a.id, START, new_parent_id=other_site.id)
    assert moved.website_id == other_site.id
    assert [p.id for p in await manager.list_ordered(website.id).fetch()] == [c.id, b.id]
