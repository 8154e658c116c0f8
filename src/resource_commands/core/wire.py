"""
Wire codec for commands: JSON in, ``Single``/``Multi`` out, and back.

Manifesto:
    Commands travel between processes that target different backends (a
    PostgreSQL server, a SQLite client). The backend is therefore never
    encoded: the same bytes decode under any ResourceSet, and executing
    the decoded commands picks statements from the executor's backend.

Architecture:
    ::

        Commands  :=  Envelope | [Envelope, ...]        (no discriminant)
        Envelope  :=  {"<ResourceName>": Command}
        Command   :=  {"trace": int, "action": Action, "tag": str}
        Action    :=  {"Insert": {"id": Id | null, "resource": {...}}}
                   |  {"Upsert": {"id": Id | null, "resource": {...}}}
                   |  {"Update": {"id": Id, "resource": {...}}}
                   |  {"Drop": Id}
        Id        :=  null (no keys) | scalar (one key) | [k1, k2, ...]

    Disambiguation of Commands is structural: a JSON array is checked
    first and decodes as ``Multi``; a JSON object decodes as ``Single``.

Examples:
    >>> server = ResourceSet(Message)
    >>> payload = server.dumps(Single(Command(0, Upsert(message), "Send")))
    >>> payload
    '{"Message":{"trace":0,"action":{"Upsert":{"id":null,"resource":{...}}},"tag":"Send"}}'
    >>> client = ResourceSet(Message)
    >>> client.dumps(client.loads(payload)) == payload
    True

Guardrails:
    ❌ DON'T: Add a backend field to the envelope
    ✅ DO: Let the executor's backend select the statements

Tags:
    wire, serialization, json, pydantic, resource-commands
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from functools import lru_cache
from typing import Any, Optional

from pydantic import BaseModel, TypeAdapter, ValidationError

from .actions import Action, Drop, Insert, Update, Upsert, action_name, resource_type_of
from .commands import Command, Commands, Multi, Single
from .errors import WireError
from .protocols import ExecutorPool
from .resource import Resource


class _CommandPayload(BaseModel):
    trace: int
    action: dict[str, Any]
    tag: str


class _WriteBody(BaseModel):
    id: Any = None
    resource: dict[str, Any]


class _UpdateBody(BaseModel):
    id: Any
    resource: dict[str, Any]


@lru_cache(maxsize=None)
def _id_adapter(resource_type: type[Resource], optional: bool) -> TypeAdapter:
    id_type = resource_type.resource_schema().id_type
    return TypeAdapter(Optional[id_type] if optional else id_type)


class ResourceSet:
    """
    The record types one endpoint understands, and their wire names.

    Types are named by class name unless given a name explicitly as a
    keyword argument. Decoding rejects names outside the set.

    Examples:
        >>> ResourceSet(Message, Group, Member=GroupMember).names
        ['Message', 'Group', 'Member']
    """

    def __init__(self, *resource_types: type[Resource], **named: type[Resource]):
        self._by_name: dict[str, type[Resource]] = {}
        for resource_type in resource_types:
            self._register(resource_type.__name__, resource_type)
        for name, resource_type in named.items():
            self._register(name, resource_type)
        self._by_type = {t: n for n, t in self._by_name.items()}

    def _register(self, name: str, resource_type: type[Resource]) -> None:
        if name in self._by_name:
            raise ValueError(f"resource name {name!r} registered twice")
        resource_type.resource_schema()
        self._by_name[name] = resource_type

    @property
    def names(self) -> list[str]:
        return list(self._by_name)

    def resource_type(self, name: str) -> type[Resource]:
        try:
            return self._by_name[name]
        except KeyError:
            raise WireError(f"unknown resource {name!r}; expected one of {self.names}") from None

    def name_of(self, resource_type: type[Resource]) -> str:
        try:
            return self._by_type[resource_type]
        except KeyError:
            raise WireError(f"{resource_type.__name__} is not part of this resource set") from None

    # -- Encoding ----------------------------------------------------------

    def encode_action(self, action: Action) -> dict[str, Any]:
        resource_type = resource_type_of(action)
        match action:
            case Insert(resource=res, id=resource_id) | Upsert(resource=res, id=resource_id):
                body: Any = {
                    "id": _id_adapter(resource_type, True).dump_python(resource_id, mode="json"),
                    "resource": res.model_dump(mode="json"),
                }
            case Update(resource=res, id=resource_id):
                body = {
                    "id": _id_adapter(resource_type, False).dump_python(resource_id, mode="json"),
                    "resource": res.model_dump(mode="json"),
                }
            case Drop(id=resource_id):
                body = _id_adapter(resource_type, False).dump_python(resource_id, mode="json")
        return {action_name(action): body}

    def encode_command(self, command: Command) -> dict[str, Any]:
        name = self.name_of(resource_type_of(command.action))
        return {
            name: {
                "trace": command.trace,
                "action": self.encode_action(command.action),
                "tag": command.tag,
            }
        }

    def encode(self, commands: Commands) -> dict[str, Any] | list[dict[str, Any]]:
        """Wire structure of ``commands`` (plain dicts/lists, JSON-ready)."""
        match commands:
            case Single(command=command):
                return self.encode_command(command)
            case Multi(commands=batch):
                return [self.encode_command(command) for command in batch]
            case _:
                raise WireError(f"cannot encode {commands!r}")

    def dumps(self, commands: Commands) -> str:
        """Compact JSON text of ``commands``."""
        return json.dumps(self.encode(commands), separators=(",", ":"))

    # -- Decoding ----------------------------------------------------------

    def decode_action(self, resource_type: type[Resource], data: Any) -> Action:
        if not isinstance(data, Mapping) or len(data) != 1:
            raise WireError(f"action must be an object with exactly one variant, got {data!r}")
        ((variant, body),) = data.items()
        try:
            match variant:
                case "Insert" | "Upsert":
                    write = _WriteBody.model_validate(body)
                    resource_id = _id_adapter(resource_type, True).validate_python(write.id)
                    res = resource_type.model_validate(write.resource)
                    if variant == "Insert":
                        return Insert(res, resource_id)
                    return Upsert(res, resource_id)
                case "Update":
                    update = _UpdateBody.model_validate(body)
                    resource_id = _id_adapter(resource_type, False).validate_python(update.id)
                    return Update(resource_type.model_validate(update.resource), resource_id)
                case "Drop":
                    resource_id = _id_adapter(resource_type, False).validate_python(body)
                    return Drop(resource_type, resource_id)
                case _:
                    raise WireError(
                        f"unknown action {variant!r}; expected Insert, Upsert, Update or Drop"
                    )
        except ValidationError as e:
            raise WireError(f"invalid {variant} action for {resource_type.__name__}", cause=e) from e

    def decode_command(self, data: Any) -> Command:
        if not isinstance(data, Mapping) or len(data) != 1:
            raise WireError(f"command envelope must name exactly one resource, got {data!r}")
        ((name, payload),) = data.items()
        resource_type = self.resource_type(name)
        try:
            command = _CommandPayload.model_validate(payload)
        except ValidationError as e:
            raise WireError(f"invalid {name} command", cause=e) from e
        action = self.decode_action(resource_type, command.action)
        return Command(trace=command.trace, action=action, tag=command.tag)

    def decode(self, data: Any) -> Commands:
        """Decode a wire structure: array → ``Multi``, object → ``Single``."""
        if isinstance(data, list):
            return Multi(self.decode_command(item) for item in data)
        if isinstance(data, Mapping):
            return Single(self.decode_command(data))
        raise WireError(f"commands must be a JSON object or array, got {type(data).__name__}")

    def loads(self, text: str | bytes) -> Commands:
        """Decode JSON text into ``Single`` or ``Multi``."""
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise WireError(f"commands are not valid JSON: {e}", cause=e) from e
        return self.decode(data)

    # -- Execution ---------------------------------------------------------

    async def apply(self, payload: str | bytes, pool: ExecutorPool) -> Commands:
        """Decode ``payload`` and execute it against ``pool``.

        Nothing runs unless the whole payload decodes. Returns the decoded
        commands.
        """
        commands = self.loads(payload)
        await commands.execute(pool)
        return commands


__all__ = [
    "ResourceSet",
]
