"""
Ordered sibling collections (pages in a website, components in a page).

Every placement resolves a position against a fresh snapshot of the
siblings, asks the order-key index for a key between the two neighbours and
writes exactly one row. Keys of other siblings are never touched.

Two editors aiming at the same gap can both succeed; their keys just land
next to each other. If they pick the very same key the store reports an
OrderKeyCollision and the placement is recomputed against the new
neighbours, a bounded number of times.
"""
from __future__ import annotations

import uuid
from bisect import bisect_left
from dataclasses import dataclass
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Set,
    Tuple,
    TypeVar,
    Union,
)

from sitebuilder.core.config import settings
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
from sitebuilder.core.logging import get_logger
from sitebuilder.core.order_keys import key_between
from sitebuilder.core.plan_limits import get_next_plan
from sitebuilder.services.billing import PlanLimitsProvider

logger = get_logger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------
# Positions
# ---------------------------------------------------------
@dataclass(frozen=True)
class Start:
    pass


@dataclass(frozen=True)
class End:
    pass


@dataclass(frozen=True)
class Before:
    sibling_id: uuid.UUID


@dataclass(frozen=True)
class After:
    sibling_id: uuid.UUID


Position = Union[Start, End, Before, After]

START = Start()
END = End()


class SiblingStore(Protocol):
    """
    Persistence for one kind of ordered entity. Entities expose ``id``,
    ``order_key`` and ``parent_id``; inserts and key updates raise
    OrderKeyCollision when (parent, order_key) is already taken.
    """

    kind: str
    parent_kind: str

    async def get(self, entity_id: uuid.UUID) -> Optional[Any]: ...

    async def list_by_parent(self, parent_id: uuid.UUID) -> List[Any]: ...

    async def count_by_parent(self, parent_id: uuid.UUID) -> int: ...

    async def parent_tenant_id(self, parent_id: uuid.UUID) -> Optional[uuid.UUID]: ...

    async def insert(self, parent_id: uuid.UUID, order_key: str, payload: Mapping[str, Any]) -> Any: ...

    async def update_key(
        self,
        entity_id: uuid.UUID,
        order_key: str,
        parent_id: Optional[uuid.UUID] = None,
    ) -> Any: ...

    async def delete(self, entity_id: uuid.UUID) -> None: ...


class OrderedListing:
    """
    Siblings of one parent in key order.

    Each iteration reads a new snapshot, so the listing can be iterated again
    and always reflects what was persisted when that iteration started.
    """

    def __init__(self, store: SiblingStore, parent_id: uuid.UUID) -> None:
        self._store = store
        self.parent_id = parent_id

    async def fetch(self) -> Tuple[Any, ...]:
        rows = await self._store.list_by_parent(self.parent_id)
        return tuple(sorted(rows, key=lambda e: e.order_key))

    async def __aiter__(self) -> AsyncIterator[Any]:
        for entity in await self.fetch():
            yield entity


def _stable_indices(keys: Sequence[str]) -> Set[int]:
    """Indices of one longest strictly increasing subsequence of ``keys``."""
    tails: List[str] = []
    tail_idx: List[int] = []
    prev: List[int] = [-1] * len(keys)
    for i, k in enumerate(keys):
        pos = bisect_left(tails, k)
        if pos == len(tails):
            tails.append(k)
            tail_idx.append(i)
        else:
            tails[pos] = k
            tail_idx[pos] = i
        prev[i] = tail_idx[pos - 1] if pos > 0 else -1

    keep: Set[int] = set()
    i = tail_idx[-1] if tail_idx else -1
    while i != -1:
        keep.add(i)
        i = prev[i]
    return keep


class OrderedCollectionManager:
    def __init__(
        self,
        store: SiblingStore,
        plan_limits: PlanLimitsProvider,
        limit_name: str,
        max_attempts: Optional[int] = None,
    ) -> None:
        self.store = store
        self.plan_limits = plan_limits
        self.limit_name = limit_name
        self.max_attempts = max_attempts or settings.ORDER_KEY_MAX_ATTEMPTS

    # -----------------------------
    # Queries
    # -----------------------------
    def list_ordered(self, parent_id: uuid.UUID) -> OrderedListing:
        return OrderedListing(self.store, parent_id)

    async def _snapshot(self, parent_id: uuid.UUID) -> Tuple[Any, ...]:
        return await self.list_ordered(parent_id).fetch()

    # -----------------------------
    # Position resolution
    # -----------------------------
    def _neighbour_keys(
        self,
        siblings: Sequence[Any],
        position: Position,
        parent_id: uuid.UUID,
        moving_id: Optional[uuid.UUID] = None,
    ) -> Tuple[Optional[str], Optional[str]]:
        ordered = [s for s in siblings if s.id != moving_id]

        if isinstance(position, Start):
            return None, (ordered[0].order_key if ordered else None)
        if isinstance(position, End):
            return (ordered[-1].order_key if ordered else None), None

        if moving_id is not None and position.sibling_id == moving_id:
            raise SelfReferential(moving_id)

        for idx, sibling in enumerate(ordered):
            if sibling.id == position.sibling_id:
                break
        else:
            raise SiblingNotFound(position.sibling_id, parent_id)

        if isinstance(position, Before):
            lo = ordered[idx - 1].order_key if idx > 0 else None
            return lo, ordered[idx].order_key

        hi = ordered[idx + 1].order_key if idx + 1 < len(ordered) else None
        return ordered[idx].order_key, hi

    async def _with_retry(self, attempt: Callable[[], Awaitable[T]], *, op: str, parent_id: uuid.UUID) -> T:
        last: Optional[OrderKeyCollision] = None
        for n in range(1, self.max_attempts + 1):
            try:
                return await attempt()
            except OrderKeyCollision as exc:
                last = exc
                logger.info(
                    "Order key collision on %s %s under %s (attempt %d/%d)",
                    self.store.kind, op, parent_id, n, self.max_attempts,
                )
        logger.error(
            "Gave up allocating an order key for %s %s under %s after %d attempts",
            self.store.kind, op, parent_id, self.max_attempts,
        )
        raise InternalError(f"could not place {self.store.kind}; try again") from last

    async def _check_plan_limit(self, tenant_id: uuid.UUID, parent_id: uuid.UUID) -> None:
        limits = await self.plan_limits.get_plan_limits(tenant_id)
        maximum = getattr(limits, self.limit_name)
        current = await self.store.count_by_parent(parent_id)
        if current >= maximum:
            raise PlanLimitExceeded(self.limit_name, current, maximum, get_next_plan(limits.plan))

    async def _require_parent(self, parent_id: uuid.UUID) -> uuid.UUID:
        tenant_id = await self.store.parent_tenant_id(parent_id)
        if tenant_id is None:
            raise ResourceNotFound(self.store.parent_kind, parent_id)
        return tenant_id

    # -----------------------------
    # Mutations
    # -----------------------------
    async def insert(self, parent_id: uuid.UUID, payload: Mapping[str, Any], position: Position = END):
        tenant_id = await self._require_parent(parent_id)
        await self._check_plan_limit(tenant_id, parent_id)

        async def attempt():
            siblings = await self._snapshot(parent_id)
            lo, hi = self._neighbour_keys(siblings, position, parent_id)
            key = key_between(lo, hi)
            return await self.store.insert(parent_id, str(key), payload)

        entity = await self._with_retry(attempt, op="insert", parent_id=parent_id)
        logger.info("Inserted %s %s under %s at %s", self.store.kind, entity.id, parent_id, entity.order_key)
        return entity

    async def move(
        self,
        entity_id: uuid.UUID,
        position: Position,
        new_parent_id: Optional[uuid.UUID] = None,
    ):
        """
        Give one entity a new key at ``position``; optionally under another
        parent of the same tenant. Only the moved row is written.
        """
        entity = await self.store.get(entity_id)
        if entity is None:
            raise ResourceNotFound(self.store.kind, entity_id)
        if isinstance(position, (Before, After)) and position.sibling_id == entity_id:
            raise SelfReferential(entity_id)

        source_parent = entity.parent_id
        target_parent = new_parent_id if new_parent_id is not None else source_parent
        reparent = target_parent != source_parent

        if reparent:
            source_tenant = await self._require_parent(source_parent)
            target_tenant = await self._require_parent(target_parent)
            if source_tenant != target_tenant:
                raise WrongTenant(f"{self.store.parent_kind}:{target_parent}", source_tenant, target_tenant)
            await self._check_plan_limit(target_tenant, target_parent)

        async def attempt():
            siblings = await self._snapshot(target_parent)
            lo, hi = self._neighbour_keys(siblings, position, target_parent, moving_id=entity_id)
            key = key_between(lo, hi)
            return await self.store.update_key(entity_id, str(key), parent_id=target_parent if reparent else None)

        moved = await self._with_retry(attempt, op="move", parent_id=target_parent)
        logger.info("Moved %s %s under %s to %s", self.store.kind, entity_id, target_parent, moved.order_key)
        return moved

    async def reorder_bulk(self, parent_id: uuid.UUID, entity_ids: Sequence[uuid.UUID]) -> List[Any]:
        """
        Make the siblings follow ``entity_ids``.

        ``entity_ids`` must name every current sibling exactly once. The
        longest run already in the right relative order keeps its keys; the
        other entities are re-keyed one by one, walking the sequence. Returns
        the entities that were rewritten.
        """
        siblings = await self._snapshot(parent_id)
        by_id = {s.id: s for s in siblings}

        for entity_id in entity_ids:
            if entity_id not in by_id:
                raise SiblingNotFound(entity_id, parent_id)
        if len(set(entity_ids)) != len(entity_ids):
            raise InvalidReorder("reorder lists the same entity more than once")
        if len(entity_ids) != len(by_id):
            raise InvalidReorder("reorder must list every sibling exactly once")

        ids = list(entity_ids)
        current_keys = [by_id[i].order_key for i in ids]
        keep = _stable_indices(current_keys)

        rewritten: List[Any] = []
        prev_key: Optional[str] = None
        for pos, entity_id in enumerate(ids):
            if pos in keep:
                prev_key = current_keys[pos]
                continue

            hi = next((current_keys[j] for j in range(pos + 1, len(ids)) if j in keep), None)
            entity = await self._with_retry(
                self._placer(parent_id, entity_id, prev_key, hi),
                op="reorder",
                parent_id=parent_id,
            )
            prev_key = entity.order_key
            rewritten.append(entity)

        logger.info("Reordered %s under %s: %d of %d rewritten", self.store.kind, parent_id, len(rewritten), len(ids))
        return rewritten

    def _placer(
        self,
        parent_id: uuid.UUID,
        entity_id: uuid.UUID,
        lo: Optional[str],
        hi: Optional[str],
    ) -> Callable[[], Awaitable[Any]]:
        async def attempt():
            # Stay below the nearest existing key in the gap: rows still
            # waiting to be re-keyed, or rows another editor just added.
            upper = hi
            for sibling in await self._snapshot(parent_id):
                if sibling.id == entity_id:
                    continue
                k = sibling.order_key
                if (lo is None or k > lo) and (upper is None or k < upper):
                    upper = k
            key = key_between(lo, upper)
            return await self.store.update_key(entity_id, str(key))

        return attempt

    async def delete(self, entity_id: uuid.UUID) -> None:
        await self.store.delete(entity_id)
        logger.info("Deleted %s %s", self.store.kind, entity_id)
