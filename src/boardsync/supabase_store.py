"""RemoteStore backed by a hosted Supabase project."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

import httpx
from realtime import RealtimeSubscribeStates
from supabase import AsyncClient, AuthError, PostgrestAPIError, acreate_client

from boardsync.remote import ChangeCallback, RemoteError, parse_change

logger = logging.getLogger(__name__)

SCHEMA = "public"

# Seconds to wait for the server to accept a channel join
SUBSCRIBE_TIMEOUT = 10.0

_REMOTE_ERRORS = (PostgrestAPIError, AuthError, httpx.HTTPError)


def _message(exc: Exception) -> str:
    """Best human-readable text for a library error."""
    return getattr(exc, "message", None) or str(exc) or type(exc).__name__


class ChannelSubscription:
    """One realtime channel. Closing removes it from the client."""

    def __init__(self, client: AsyncClient, channel: Any, name: str) -> None:
        self.client = client
        self.channel = channel
        self.name = name
        self.closed = False

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        await self.client.remove_channel(self.channel)
        logger.debug("closed channel %s", self.name)


class SupabaseStore:
    """CRUD, auth and change-feed access through supabase-py's async client."""

    def __init__(self, client: AsyncClient, subscribe_timeout: float = SUBSCRIBE_TIMEOUT) -> None:
        self.client = client
        self.subscribe_timeout = subscribe_timeout

    @classmethod
    async def connect(cls, url: str, key: str) -> SupabaseStore:
        """Create the async client for a project URL and anon key."""
        if not url or not key:
            raise RemoteError("Supabase URL and key are required")
        try:
            client = await acreate_client(url, key)
        except _REMOTE_ERRORS as exc:
            raise RemoteError(_message(exc)) from exc
        return cls(client)

    # -- auth --

    async def current_user(self) -> str | None:
        try:
            session = await self.client.auth.get_session()
        except _REMOTE_ERRORS as exc:
            raise RemoteError(_message(exc)) from exc
        if session is None or session.user is None:
            return None
        return session.user.id

    async def sign_in(self, email: str, password: str) -> str:
        """Sign in with email and password. Returns the user id."""
        try:
            response = await self.client.auth.sign_in_with_password({"email": email, "password": password})
        except _REMOTE_ERRORS as exc:
            raise RemoteError(_message(exc)) from exc
        if response.user is None:
            raise RemoteError("Sign in failed")
        return response.user.id

    async def sign_up(self, email: str, password: str) -> str:
        """Register a new account. Returns the user id."""
        try:
            response = await self.client.auth.sign_up({"email": email, "password": password})
        except _REMOTE_ERRORS as exc:
            raise RemoteError(_message(exc)) from exc
        if response.user is None:
            raise RemoteError("Sign up failed")
        return response.user.id

    async def sign_out(self) -> None:
        try:
            await self.client.auth.sign_out()
        except _REMOTE_ERRORS as exc:
            raise RemoteError(_message(exc)) from exc

    # -- CRUD --

    async def select(
        self,
        table: str,
        *,
        eq: dict[str, Any] | None = None,
        in_: tuple[str, Sequence[Any]] | None = None,
        order: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        columns: str = "*",
    ) -> list[dict[str, Any]]:
        query = self.client.table(table).select(columns)
        for column, value in (eq or {}).items():
            query = query.eq(column, value)
        if in_ is not None:
            column, values = in_
            query = query.in_(column, list(values))
        if order is not None:
            query = query.order(order, desc=descending)
        if limit is not None:
            query = query.limit(limit)
        try:
            response = await query.execute()
        except _REMOTE_ERRORS as exc:
            raise RemoteError(_message(exc)) from exc
        return list(response.data or [])

    async def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self.client.table(table).insert(row).execute()
        except _REMOTE_ERRORS as exc:
            raise RemoteError(_message(exc)) from exc
        if not response.data:
            raise RemoteError(f"insert into {table} returned no row")
        return response.data[0]

    async def update(self, table: str, fields: dict[str, Any], match: dict[str, Any]) -> dict[str, Any] | None:
        query = self.client.table(table).update(fields)
        for column, value in match.items():
            query = query.eq(column, value)
        try:
            response = await query.execute()
        except _REMOTE_ERRORS as exc:
            raise RemoteError(_message(exc)) from exc
        return response.data[0] if response.data else None

    async def delete(self, table: str, match: dict[str, Any]) -> None:
        if not match:
            raise ValueError("delete needs at least one match column")
        query = self.client.table(table).delete()
        for column, value in match.items():
            query = query.eq(column, value)
        try:
            await query.execute()
        except _REMOTE_ERRORS as exc:
            raise RemoteError(_message(exc)) from exc

    # -- realtime --

    async def subscribe(
        self,
        table: str,
        callback: ChangeCallback,
        column: str | None = None,
        value: Any = None,
    ) -> ChannelSubscription:
        name = f"{table}-changes" if column is None else f"{table}-changes-{value}"
        options: dict[str, Any] = {"schema": SCHEMA, "table": table}
        if column is not None:
            options["filter"] = f"{column}=eq.{value}"

        def on_change(payload: dict[str, Any]) -> None:
            try:
                event = parse_change(payload)
            except ValueError as exc:
                logger.warning("ignoring %s payload: %s", name, exc)
                return
            callback(event)

        joined: asyncio.Future[None] = asyncio.get_running_loop().create_future()

        def on_state(state: RealtimeSubscribeStates, error: Exception | None = None) -> None:
            # Later states come from rejoins after the first answer
            if joined.done():
                if state != RealtimeSubscribeStates.SUBSCRIBED:
                    logger.warning("channel %s is %s: %s", name, state.value, error)
                return
            if state == RealtimeSubscribeStates.SUBSCRIBED:
                joined.set_result(None)
            else:
                reason = _message(error) if error is not None else state.value.lower().replace("_", " ")
                joined.set_exception(RemoteError(f"subscribe to {name} failed: {reason}"))

        channel = self.client.channel(name)
        channel.on_postgres_changes("*", callback=on_change, **options)
        try:
            await channel.subscribe(on_state)
            await asyncio.wait_for(joined, self.subscribe_timeout)
        except RemoteError:
            await self.client.remove_channel(channel)
            raise
        except asyncio.TimeoutError as exc:
            await self.client.remove_channel(channel)
            raise RemoteError(f"subscribe to {name} failed: no answer after {self.subscribe_timeout:g}s") from exc
        except Exception as exc:
            await self.client.remove_channel(channel)
            raise RemoteError(f"subscribe to {name} failed: {_message(exc)}") from exc
        logger.debug("subscribed channel %s", name)
        return ChannelSubscription(self.client, channel, name)
