"""Actions: one write against one resource, ready to run on an executor.

``Action`` is a closed union of four variants. Each variant is a single
atomic unit of work; there are no multi-step transitions.

=========  ==================  =====================================
Variant    Id                  Runs
=========  ==================  =====================================
Insert     optional            ``resource.insert`` (insert)
Upsert     optional            ``resource.upsert`` (upsert)
Update     required            ``resource.update`` (upsert statement)
Drop       required            ``ResourceType.drop`` (delete)
=========  ==================  =====================================

``Drop`` carries the resource *type* because there is no record to act on.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

from .protocols import Executor
from .resource import Resource

R = TypeVar("R", bound=Resource)


@dataclass(frozen=True)
class Insert(Generic[R]):
    resource: R
    id: Any | None = None


@dataclass(frozen=True)
class Upsert(Generic[R]):
    resource: R
    id: Any | None = None


@dataclass(frozen=True)
class Update(Generic[R]):
    resource: R
    id: Any


@dataclass(frozen=True)
class Drop(Generic[R]):
    resource_type: type[R]
    id: Any


Action = Union[Insert[Any], Upsert[Any], Update[Any], Drop[Any]]


def action_name(action: Action) -> str:
    """Variant name, as used on the wire (``"Insert"``, ``"Drop"``, ...)."""
    return type(action).__name__


def resource_type_of(action: Action) -> type[Resource]:
    """Record type an action writes to."""
    match action:
        case Drop(resource_type=resource_type):
            return resource_type
        case Insert(resource=res) | Upsert(resource=res) | Update(resource=res):
            return type(res)
        case _:
            raise TypeError(f"not an action: {action!r}")


async def execute_action(action: Action, executor: Executor) -> None:
    """Run ``action`` against ``executor``, dispatching on its variant."""
    match action:
        case Insert(resource=res, id=resource_id):
            await res.insert(resource_id, executor)
        case Upsert(resource=res, id=resource_id):
            await res.upsert(resource_id, executor)
        case Update(resource=res, id=resource_id):
            await res.update(resource_id, executor)
        case Drop(resource_type=resource_type, id=resource_id):
            await resource_type.drop(resource_id, executor)
        case _:
            raise TypeError(f"not an action: {action!r}")


__all__ = [
    "Action",
    "Insert",
    "Upsert",
    "Update",
    "Drop",
    "action_name",
    "execute_action",
    "resource_type_of",
]
