"""Real-time vault notifications delivered to clients over WebSocket."""

from __future__ import annotations

import asyncio
import json
import logging
import time
import uuid
from dataclasses import dataclass, field, fields
from typing import Any, Awaitable, Callable, ClassVar, Optional, Union

from aiohttp import WSMsgType, web

from .errors import DeserializationError
from .utils import I64_MAX, I64_MIN

logger = logging.getLogger(__name__)

HEARTBEAT_INTERVAL = 5.0
CLIENT_TIMEOUT = 10.0
BROADCAST_CHANNEL_SIZE = 1000


# Client -> server messages


@dataclass(frozen=True)
class Subscribe:
    TYPE: ClassVar[str] = "subscribe"
    vault_pubkey: str


@dataclass(frozen=True)
class Unsubscribe:
    TYPE: ClassVar[str] = "unsubscribe"
    vault_pubkey: str


@dataclass(frozen=True)
class Ping:
    TYPE: ClassVar[str] = "ping"


# Server -> client messages


@dataclass(frozen=True)
class Connected:
    TYPE: ClassVar[str] = "connected"
    message: str
    client_id: str


@dataclass(frozen=True)
class SubscribeAck:
    TYPE: ClassVar[str] = "subscribe_ack"
    vault_pubkey: str
    success: bool


@dataclass(frozen=True)
class UnsubscribeAck:
    TYPE: ClassVar[str] = "unsubscribe_ack"
    vault_pubkey: str
    success: bool


@dataclass(frozen=True)
class Pong:
    TYPE: ClassVar[str] = "pong"


@dataclass(frozen=True)
class BalanceUpdate:
    TYPE: ClassVar[str] = "balance_update"
    vault_pubkey: str
    total_balance: int
    available_balance: int
    locked_balance: int
    timestamp: int


@dataclass(frozen=True)
class Deposit:
    TYPE: ClassVar[str] = "deposit"
    vault_pubkey: str
    amount: int
    tx_signature: str
    new_balance: int
    timestamp: int


@dataclass(frozen=True)
class Withdrawal:
    TYPE: ClassVar[str] = "withdrawal"
    vault_pubkey: str
    amount: int
    tx_signature: str
    new_balance: int
    timestamp: int


@dataclass(frozen=True)
class Lock:
    TYPE: ClassVar[str] = "lock"
    vault_pubkey: str
    amount: int
    new_locked: int
    new_available: int
    timestamp: int


@dataclass(frozen=True)
class Unlock:
    TYPE: ClassVar[str] = "unlock"
    vault_pubkey: str
    amount: int
    new_locked: int
    new_available: int
    timestamp: int


@dataclass(frozen=True)
class TvlUpdate:
    TYPE: ClassVar[str] = "tvl_update"
    total_vaults: int
    total_value_locked: int
    timestamp: int


@dataclass(frozen=True)
class Alert:
    TYPE: ClassVar[str] = "alert"
    alert_type: str
    severity: str
    vault_pubkey: Optional[str]
    message: str
    timestamp: int


@dataclass(frozen=True)
class ErrorNotice:
    TYPE: ClassVar[str] = "error"
    message: str
    code: Optional[str]


WsMessage = Union[
    Subscribe,
    Unsubscribe,
    Ping,
    Connected,
    SubscribeAck,
    UnsubscribeAck,
    Pong,
    BalanceUpdate,
    Deposit,
    Withdrawal,
    Lock,
    Unlock,
    TvlUpdate,
    Alert,
    ErrorNotice,
]

_MESSAGE_TYPES: dict[str, type] = {
    cls.TYPE: cls
    for cls in (
        Subscribe,
        Unsubscribe,
        Ping,
        Connected,
        SubscribeAck,
        UnsubscribeAck,
        Pong,
        BalanceUpdate,
        Deposit,
        Withdrawal,
        Lock,
        Unlock,
        TvlUpdate,
        Alert,
        ErrorNotice,
    )
}


def message_to_dict(message: WsMessage) -> dict[str, Any]:
    """Return the message as a dict tagged with its ``type``."""
    result: dict[str, Any] = {"type": message.TYPE}
    for f in fields(message):
        result[f.name] = getattr(message, f.name)
    return result


def message_to_json(message: WsMessage) -> str:
    return json.dumps(message_to_dict(message))


def _convert(name: str, annotation: str, value: Any) -> Any:
    optional = annotation.startswith("Optional[")
    base = annotation[len("Optional["):-1] if optional else annotation
    if value is None and optional:
        return None
    if base == "str" and isinstance(value, str):
        return value
    if base == "bool" and isinstance(value, bool):
        return value
    if (
        base == "int"
        and isinstance(value, int)
        and not isinstance(value, bool)
        and I64_MIN <= value <= I64_MAX
    ):
        return value
    raise DeserializationError(f"invalid type for field `{name}`: expected {base}")


def parse_message(text: str) -> WsMessage:
    """Parse a JSON message; raise DeserializationError when it is malformed."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DeserializationError(str(exc)) from exc
    if not isinstance(data, dict):
        raise DeserializationError("expected a JSON object")
    if "type" not in data:
        raise DeserializationError("missing field `type`")
    tag = data["type"]
    cls = _MESSAGE_TYPES.get(tag) if isinstance(tag, str) else None
    if cls is None:
        raise DeserializationError(f"unknown variant `{tag}`")
    values: dict[str, Any] = {}
    for f in fields(cls):
        annotation = str(f.type)
        if f.name not in data:
            if annotation.startswith("Optional["):
                values[f.name] = None
                continue
            raise DeserializationError(f"missing field `{f.name}`")
        values[f.name] = _convert(f.name, annotation, data[f.name])
    return cls(**values)


def _offer(queue: "asyncio.Queue[WsMessage]", message: WsMessage) -> None:
    """Put a message, dropping the oldest one if the queue is full."""
    while True:
        try:
            queue.put_nowait(message)
            return
        except asyncio.QueueFull:
            try:
                queue.get_nowait()
            except asyncio.QueueEmpty:
                pass


@dataclass
class ClientConnection:
    client_id: str
    queue: "asyncio.Queue[WsMessage]"
    subscribed_vaults: set[str] = field(default_factory=set)
    connected_at: float = field(default_factory=time.monotonic)


@dataclass(frozen=True)
class WebSocketStats:
    total_clients: int
    total_vault_subscriptions: int


class WebSocketRegistry:
    """Tracks connected clients and which vaults each one follows."""

    def __init__(self) -> None:
        self._clients: dict[str, ClientConnection] = {}
        self._vault_subscriptions: dict[str, set[str]] = {}

    def register_client(self) -> tuple[str, "asyncio.Queue[WsMessage]"]:
        client_id = str(uuid.uuid4())
        queue: asyncio.Queue[WsMessage] = asyncio.Queue(maxsize=BROADCAST_CHANNEL_SIZE)
        self._clients[client_id] = ClientConnection(client_id=client_id, queue=queue)
        logger.info("Registered new WebSocket client: %s", client_id)
        return client_id, queue

    def unregister_client(self, client_id: str) -> None:
        connection = self._clients.pop(client_id, None)
        if connection is None:
            return
        for vault_pubkey in connection.subscribed_vaults:
            subscribers = self._vault_subscriptions.get(vault_pubkey)
            if subscribers is not None:
                subscribers.discard(client_id)
        logger.info(
            "Unregistered WebSocket client: %s (was connected for %.3fs)",
            client_id,
            time.monotonic() - connection.connected_at,
        )

    def subscribe_to_vault(self, client_id: str, vault_pubkey: str) -> bool:
        connection = self._clients.get(client_id)
        if connection is None:
            return False
        connection.subscribed_vaults.add(vault_pubkey)
        self._vault_subscriptions.setdefault(vault_pubkey, set()).add(client_id)
        logger.debug("Client %s subscribed to vault %s", client_id, vault_pubkey)
        return True

    def unsubscribe_from_vault(self, client_id: str, vault_pubkey: str) -> bool:
        connection = self._clients.get(client_id)
        if connection is None:
            return False
        connection.subscribed_vaults.discard(vault_pubkey)
        subscribers = self._vault_subscriptions.get(vault_pubkey)
        if subscribers is not None:
            subscribers.discard(client_id)
        logger.debug("Client %s unsubscribed from vault %s", client_id, vault_pubkey)
        return True

    def broadcast_to_vault(self, vault_pubkey: str, message: WsMessage) -> int:
        """Queue the message for every subscriber of the vault; return how many."""
        sent = 0
        for client_id in list(self._vault_subscriptions.get(vault_pubkey, ())):
            connection = self._clients.get(client_id)
            if connection is not None:
                _offer(connection.queue, message)
                sent += 1
        logger.debug("Broadcast to vault %s: %d sent", vault_pubkey, sent)
        return sent

    def broadcast_to_all(self, message: WsMessage) -> int:
        """Queue the message for every connected client; return how many."""
        sent = 0
        for connection in list(self._clients.values()):
            _offer(connection.queue, message)
            sent += 1
        logger.debug("Global broadcast: %d sent", sent)
        return sent

    def client_count(self) -> int:
        return len(self._clients)

    def vault_subscriber_count(self, vault_pubkey: str) -> int:
        return len(self._vault_subscriptions.get(vault_pubkey, ()))

    def get_client_queue(self, client_id: str) -> Optional["asyncio.Queue[WsMessage]"]:
        connection = self._clients.get(client_id)
        return connection.queue if connection is not None else None

    def stats(self) -> WebSocketStats:
        return WebSocketStats(
            total_clients=self.client_count(),
            total_vault_subscriptions=sum(
                len(s) for s in self._vault_subscriptions.values()
            ),
        )


WS_REGISTRY = WebSocketRegistry()

REGISTRY_KEY = web.AppKey("registry", WebSocketRegistry)


class ConnectionHandler:
    """Handles the messages one connected client sends."""

    def __init__(
        self,
        client_id: str,
        send: Callable[[str], Awaitable[None]],
        registry: Optional[WebSocketRegistry] = None,
    ) -> None:
        self.client_id = client_id
        self.registry = registry if registry is not None else WS_REGISTRY
        self._send = send
        self.last_heartbeat = time.monotonic()

    async def send_message(self, message: WsMessage) -> None:
        await self._send(message_to_json(message))

    async def handle_text(self, text: Union[str, bytes]) -> None:
        if isinstance(text, (bytes, bytearray)):
            try:
                text = bytes(text).decode("utf-8")
            except UnicodeDecodeError as exc:
                raise DeserializationError(f"invalid UTF-8: {exc}") from exc
        logger.debug("Received WebSocket message from %s: %s", self.client_id, text)

        try:
            message = parse_message(text)
        except DeserializationError as exc:
            logger.error("Failed to parse WebSocket message: %s", exc.detail)
            await self.send_message(
                ErrorNotice(
                    message=f"Invalid message format: {exc.detail}",
                    code="PARSE_ERROR",
                )
            )
            return

        if isinstance(message, Subscribe):
            success = self.registry.subscribe_to_vault(self.client_id, message.vault_pubkey)
            await self.send_message(SubscribeAck(message.vault_pubkey, success))
        elif isinstance(message, Unsubscribe):
            success = self.registry.unsubscribe_from_vault(
                self.client_id, message.vault_pubkey
            )
            await self.send_message(UnsubscribeAck(message.vault_pubkey, success))
        elif isinstance(message, Ping):
            self.last_heartbeat = time.monotonic()
            await self.send_message(Pong())
        else:
            logger.warning("Unexpected message type from client %s", self.client_id)
            await self.send_message(
                ErrorNotice(
                    message="Unexpected message type", code="INVALID_MESSAGE_TYPE"
                )
            )


async def _read_loop(ws: web.WebSocketResponse, handler: ConnectionHandler) -> None:
    async for msg in ws:
        if msg.type == WSMsgType.TEXT:
            try:
                await handler.handle_text(msg.data)
            except Exception as exc:
                logger.error("Error handling text message: %s", exc)
                return
        elif msg.type == WSMsgType.BINARY:
            await handler.send_message(
                ErrorNotice(
                    message="Binary messages not supported",
                    code="BINARY_NOT_SUPPORTED",
                )
            )
        elif msg.type == WSMsgType.PING:
            handler.last_heartbeat = time.monotonic()
            await ws.pong(msg.data)
        elif msg.type == WSMsgType.PONG:
            handler.last_heartbeat = time.monotonic()
        elif msg.type == WSMsgType.ERROR:
            return


async def _forward_loop(
    queue: "asyncio.Queue[WsMessage]", handler: ConnectionHandler
) -> None:
    while True:
        message = await queue.get()
        await handler.send_message(message)


async def _heartbeat_loop(ws: web.WebSocketResponse, handler: ConnectionHandler) -> None:
    while True:
        if time.monotonic() - handler.last_heartbeat > CLIENT_TIMEOUT:
            logger.warning(
                "Client %s heartbeat timeout, closing connection", handler.client_id
            )
            return
        await ws.ping(b"")
        await asyncio.sleep(HEARTBEAT_INTERVAL)


async def ws_handler(request: web.Request) -> web.WebSocketResponse:
    """Serve one WebSocket client until it disconnects or times out."""
    registry = request.app.get(REGISTRY_KEY, WS_REGISTRY)
    ws = web.WebSocketResponse(autoping=False)
    await ws.prepare(request)
    logger.info("WebSocket connection established from: %s", request.remote)

    client_id, queue = registry.register_client()
    lock = asyncio.Lock()

    async def send(text: str) -> None:
        async with lock:
            await ws.send_str(text)

    handler = ConnectionHandler(client_id, send, registry)
    tasks: list[asyncio.Task[None]] = []
    try:
        await handler.send_message(
            Connected(message="Connected to Vault Management System", client_id=client_id)
        )
        tasks = [
            asyncio.ensure_future(_read_loop(ws, handler)),
            asyncio.ensure_future(_forward_loop(queue, handler)),
            asyncio.ensure_future(_heartbeat_loop(ws, handler)),
        ]
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logger.error(
                    "WebSocket connection error for client %s: %s",
                    client_id,
                    task.exception(),
                )
    except Exception as exc:
        logger.error("WebSocket connection error for client %s: %s", client_id, exc)
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        registry.unregister_client(client_id)
        if not ws.closed:
            await ws.close()
        logger.info("WebSocket connection closed for client %s", client_id)
    return ws


def create_app(registry: Optional[WebSocketRegistry] = None) -> web.Application:
    """Build an application serving the WebSocket endpoint at ``/ws``."""
    app = web.Application()
    app[REGISTRY_KEY] = registry if registry is not None else WS_REGISTRY
    app.router.add_get("/ws", ws_handler)
    return app


def _registry(registry: Optional[WebSocketRegistry]) -> WebSocketRegistry:
    return registry if registry is not None else WS_REGISTRY


def _now() -> int:
    return int(time.time())


def broadcast_balance_update(
    vault_pubkey: str,
    total_balance: int,
    available_balance: int,
    locked_balance: int,
    registry: Optional[WebSocketRegistry] = None,
) -> int:
    update = BalanceUpdate(
        vault_pubkey=vault_pubkey,
        total_balance=total_balance,
        available_balance=available_balance,
        locked_balance=locked_balance,
        timestamp=_now(),
    )
    return _registry(registry).broadcast_to_vault(vault_pubkey, update)


def broadcast_deposit(
    vault_pubkey: str,
    amount: int,
    tx_signature: str,
    new_balance: int,
    registry: Optional[WebSocketRegistry] = None,
) -> int:
    notification = Deposit(
        vault_pubkey=vault_pubkey,
        amount=amount,
        tx_signature=tx_signature,
        new_balance=new_balance,
        timestamp=_now(),
    )
    return _registry(registry).broadcast_to_vault(vault_pubkey, notification)


def broadcast_withdrawal(
    vault_pubkey: str,
    amount: int,
    tx_signature: str,
    new_balance: int,
    registry: Optional[WebSocketRegistry] = None,
) -> int:
    notification = Withdrawal(
        vault_pubkey=vault_pubkey,
        amount=amount,
        tx_signature=tx_signature,
        new_balance=new_balance,
        timestamp=_now(),
    )
    return _registry(registry).broadcast_to_vault(vault_pubkey, notification)


def broadcast_lock(
    vault_pubkey: str,
    amount: int,
    new_locked: int,
    new_available: int,
    registry: Optional[WebSocketRegistry] = None,
) -> int:
    notification = Lock(
        vault_pubkey=vault_pubkey,
        amount=amount,
        new_locked=new_locked,
        new_available=new_available,
        timestamp=_now(),
    )
    return _registry(registry).broadcast_to_vault(vault_pubkey, notification)


def broadcast_unlock(
    vault_pubkey: str,
    amount: int,
    new_locked: int,
    new_available: int,
    registry: Optional[WebSocketRegistry] = None,
) -> int:
    notification = Unlock(
        vault_pubkey=vault_pubkey,
        amount=amount,
        new_locked=new_locked,
        new_available=new_available,
        timestamp=_now(),
    )
    return _registry(registry).broadcast_to_vault(vault_pubkey, notification)


def broadcast_tvl_update(
    total_vaults: int,
    total_value_locked: int,
    registry: Optional[WebSocketRegistry] = None,
) -> int:
    update = TvlUpdate(
        total_vaults=total_vaults,
        total_value_locked=total_value_locked,
        timestamp=_now(),
    )
    return _registry(registry).broadcast_to_all(update)


def broadcast_alert(
    alert_type: str,
    severity: str,
    vault_pubkey: Optional[str],
    message: str,
    registry: Optional[WebSocketRegistry] = None,
) -> int:
    """Send an alert to a vault's subscribers, or to everyone if no vault is given."""
    notification = Alert(
        alert_type=alert_type,
        severity=severity,
        vault_pubkey=vault_pubkey,
        message=message,
        timestamp=_now(),
    )
    target = _registry(registry)
    if vault_pubkey is not None:
        return target.broadcast_to_vault(vault_pubkey, notification)
    return target.broadcast_to_all(notification)


def get_websocket_stats(registry: Optional[WebSocketRegistry] = None) -> WebSocketStats:
    return _registry(registry).stats()