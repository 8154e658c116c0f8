"""
Commands: actions with correlation metadata, and the batches that run them.

Manifesto:
    A batch of writes either happens completely or not at all. That is the
    only compound guarantee this package makes, and it is delegated to one
    database transaction rather than re-implemented.

Architecture:
    ::

        Command(trace, action, tag)
            trace/tag → logging context + error context only

        Commands = Single | Multi

        Single(cmd).execute(pool)
            async with pool.acquire() as conn:
                cmd.execute(conn)                 # auto-committed

        Multi([c1, c2, c3]).execute(pool)
            async with pool.transaction() as tx:  # BEGIN
                c1.execute(tx)                    # in list order
                c2.execute(tx)  ✗ raises          # c3 never runs
            # ROLLBACK on error, COMMIT otherwise

Examples:
    >>> batch = Multi([
    ...     Command(trace=1, action=Insert(message, id=10), tag="Send"),
    ...     Command(trace=2, action=Drop(Message, id=3), tag="Recall"),
    ... ])
    >>> await batch.execute(pool)

Guardrails:
    ❌ DON'T: Run commands of one batch concurrently
    ✅ DO: Await each command before starting the next

    ❌ DON'T: Catch a command failure and keep going
    ✅ DO: Let the failure abort the batch so nothing is committed

Tags:
    command, batch, transaction, atomicity, resource-commands
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Union

from .actions import Action, action_name, execute_action, resource_type_of
from .errors import ResourceError
from .logging import LogContext, get_logger
from .protocols import Executor, ExecutorPool

logger = get_logger(__name__)


@dataclass(frozen=True)
class Command:
    """
    An action plus the metadata that follows it through logs and transport.

    Attributes:
        trace: Caller-supplied correlation id
        action: The write to perform
        tag: Free-form routing label (e.g. ``"Send"``)
    """

    trace: int
    action: Action
    tag: str

    async def execute(self, executor: Executor) -> None:
        """Run the wrapped action. ``trace`` and ``tag`` never affect execution."""
        async with LogContext(trace=self.trace, tag=self.tag):
            logger.info(
                "command_executing",
                action=action_name(self.action),
                resource=resource_type_of(self.action).__name__,
            )
            try:
                await execute_action(self.action, executor)
            except ResourceError as e:
                e.with_context(trace=self.trace, tag=self.tag)
                raise


@dataclass(frozen=True)
class Single:
    """One command, run on its own auto-committing connection."""

    command: Command

    async def execute(self, pool: ExecutorPool) -> None:
        async with pool.acquire() as executor:
            await self.command.execute(executor)


@dataclass(frozen=True)
class Multi:
    """An ordered batch run inside one transaction, all or nothing."""

    commands: tuple[Command, ...]

    def __init__(self, commands: Iterable[Command]):
        object.__setattr__(self, "commands", tuple(commands))

    def __len__(self) -> int:
        return len(self.commands)

    async def execute(self, pool: ExecutorPool) -> None:
        """Run every command in order in one transaction, then commit.

        The first failure stops the batch: later commands do not run and
        the transaction is rolled back.
        """
        logger.info("batch_started", size=len(self.commands))
        try:
            async with pool.transaction() as executor:
                for index, command in enumerate(self.commands):
                    try:
                        await command.execute(executor)
                    except ResourceError as e:
                        e.with_context(batch_index=index)
                        raise
        except ResourceError as e:
            logger.warning("batch_aborted", size=len(self.commands), **e.to_dict())
            raise
        logger.info("batch_committed", size=len(self.commands))


Commands = Union[Single, Multi]


async def execute_commands(commands: Commands, pool: ExecutorPool) -> None:
    """Execute a ``Single`` or ``Multi`` against ``pool``."""
    match commands:
        case Single() | Multi():
            await commands.execute(pool)
        case _:
            raise TypeError(f"not a Single or Multi: {commands!r}")


__all__ = [
    "Command",
    "Commands",
    "Multi",
    "Single",
    "execute_commands",
]
