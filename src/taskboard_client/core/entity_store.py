# src/taskboard_client/core/entity_store.py

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, Protocol, TypeVar

from .errors import RemoteError, TaskboardError
from .lifecycle import Err, LifecycleEvent, Ok, OperationResult, OperationSpec, Pending, RefreshScope
from .ports import JsonGateway, SessionView

logger = logging.getLogger(__name__)


class HasId(Protocol):
    id: int


E = TypeVar("E", bound=HasId)


class EntityStore(Generic[E]):
    """
    A collection of entities plus its request lifecycle status.

    Concurrency model:
    - single event loop, no locks
    - `loading` is true while ANY operation of this store is in flight
    - overlapping operations are neither queued nor cancelled; the last response to
      land wins for whole-collection fields
    - events are applied strictly in the order their awaits complete

    Subclasses call `_run(...)` for each remote operation and supply an `apply`
    callback that patches the collection on success.
    """

    def __init__(self, gateway: JsonGateway, session: SessionView) -> None:
        self._gateway = gateway
        self._session = session
        self.items: list[E] = []
        self.error: str | None = None
        self.last_event: LifecycleEvent | None = None
        self._in_flight = 0

    @property
    def loading(self) -> bool:
        return self._in_flight > 0

    # ---- collection helpers ----

    def get(self, entity_id: int) -> E | None:
        for item in self.items:
            if item.id == entity_id:
                return item
        return None

    def _replace_all(self, items: list[E]) -> None:
        self.items = list(items)

    def _append(self, item: E) -> None:
        self.items.append(item)

    def _splice(self, item: E) -> bool:
        """Replace the record with the same id in place. Returns False if it is not cached."""
        for idx, existing in enumerate(self.items):
            if existing.id == item.id:
                self.items[idx] = item
                return True
        return False

    def _remove(self, entity_id: int) -> None:
        self.items = [item for item in self.items if item.id != entity_id]

    # ---- lifecycle ----

    def _dispatch(self, event: LifecycleEvent, apply: Callable[[Any], None] | None = None) -> None:
        self.last_event = event
        match event:
            case Pending(operation=op):
                self._in_flight += 1
                self.error = None
                logger.debug("%s pending (in_flight=%d)", op, self._in_flight)
            case Ok(operation=op, payload=payload):
                self._in_flight = max(0, self._in_flight - 1)
                if apply is not None:
                    apply(payload)
                logger.debug("%s fulfilled (items=%d)", op, len(self.items))
            case Err(operation=op, reason=reason):
                self._in_flight = max(0, self._in_flight - 1)
                self.error = reason
                logger.info("%s rejected: %s", op, reason)

    def _fail_fast(self, spec: OperationSpec, error: TaskboardError) -> Err:
        """Report a local validation failure without touching the network or `loading`."""
        result = Err(operation=spec.name, reason=str(error), error=error)
        self.error = result.reason
        self.last_event = result
        logger.info("%s rejected locally: %s", spec.name, result.reason)
        return result

    def _reject(self, spec: OperationSpec, error: TaskboardError) -> Err:
        result = Err(operation=spec.name, reason=str(error), error=error)
        self._dispatch(result)
        return result

    async def _run(
            self,
            spec: OperationSpec,
            call: Callable[[], Awaitable[Any]],
            *,
            apply: Callable[[Any], None] | None = None,
            refresh: Callable[[Any], Awaitable[OperationResult | None]] | None = None,
    ) -> OperationResult:
        self._dispatch(Pending(spec.name))
        try:
            payload = await call()
        except TaskboardError as exc:
            return self._reject(spec, exc)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            # Payload did not match the expected response shape.
            return self._reject(spec, RemoteError(f"Malformed response: {exc}", detail=repr(exc)))
        except BaseException:
            # Cancelled or crashed: the operation is no longer in flight.
            self._in_flight = max(0, self._in_flight - 1)
            raise

        result: OperationResult = Ok(operation=spec.name, payload=payload)
        self._dispatch(result, apply)

        if refresh is None:
            return result

        match spec.refresh:
            case RefreshScope.NONE:
                return result
            case RefreshScope.RECORD:
                # The fresh record is the product of the operation.
                return await refresh(payload) or result
            case RefreshScope.COLLECTION:
                await refresh(payload)
                return result
