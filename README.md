# collateral_vault

`collateral_vault` holds the bookkeeping rules of a collateral vault system
for a perpetual futures exchange. A vault holds a user's collateral. Funds can
be deposited, withdrawn, locked for open positions, unlocked again, or moved
to another vault. The balances are meant to satisfy

    total_balance == available_balance + locked_balance

The package has three parts:

- **Shared models and validation.** These are `collateral_vault.models`,
  `collateral_vault.utils` and `collateral_vault.errors`. They cover vault
  records, transaction, snapshot, reconciliation, audit and alert records,
  API response envelopes, pagination, base58 key and signature checks, and
  checked 64-bit arithmetic.
- **Vault instruction rules.** These are `collateral_vault.state`,
  `collateral_vault.instructions` and `collateral_vault.program_errors`. They
  apply deposit, withdraw, lock, unlock and transfer to in-memory account
  objects, keep the list of authorised programs, and return the event each
  operation emits.
- **Live notifications.** This is `collateral_vault.websocket`. It provides an
  aiohttp WebSocket endpoint. Clients subscribe to vaults on it and receive
  balance, deposit, withdrawal, lock, unlock, TVL and alert messages.

## Installation

The package needs Python 3.10 or newer. Its only runtime dependency is
`aiohttp`. The `test` extra adds `pytest` and `pytest-asyncio`.

## Validation and amounts

```python
from collateral_vault.utils import (
    validate_pubkey, validate_amount, checked_add, format_usdt,
)
from collateral_vault.errors import InvalidPubkey, InvalidAmount, Overflow

validate_pubkey("1" * 32)          # passes: 32-44 characters of base58

try:
    validate_pubkey("not-valid")
except InvalidPubkey as exc:
    print(exc)                     # Invalid pubkey: ...

try:
    validate_amount(0)
except InvalidAmount:
    print("amounts must be greater than zero")

try:
    checked_add(2**63 - 1, 1)
except Overflow:
    print("Arithmetic overflow")

print(format_usdt(1_500_000))      # 1.500000 USDT
```

All amounts are integers in base units, where 1 USDT is 1,000,000 base units.
`base_units_to_usdt` and `usdt_to_base_units` convert in each direction;
`usdt_to_base_units` truncates and saturates at the 64-bit limits.
`validate_signature` accepts 86-88 characters of base58, and `b58decode`
decodes a base58 string to bytes.

## Errors

Every error from the shared layer is a subclass of
`collateral_vault.errors.VaultError`, for example `InsufficientBalance` or
`BalanceInvariantViolation`. Catch the base class to handle them all.

The instruction layer raises `collateral_vault.program_errors.ProgramError`.
Each one carries a `ProgramErrorCode` in its `error_code` attribute, for
example `UN_AUTHORIZED`, `INSUFFICIENT_BALANCE` or `OVER_FLOW`. A code gives
its text through `message()` and its number (6000 upwards) through `code()`.

## Vault instructions

```python
from collateral_vault.state import CollateralVault, TokenAccount, VaultAuthority
from collateral_vault.instructions import (
    add_authorized_program, deposit, lock_collateral, unlock_collateral, withdraw,
)

vault = CollateralVault(address="VaultA", owner="alice", token_account="VaultA-ata")
user_ata = TokenAccount(address="alice-ata", owner="alice", amount=10_000_000)
vault_ata = TokenAccount(address="VaultA-ata", owner="VaultA")

deposit(vault, "alice", "alice", user_ata, vault_ata, 10_000_000, timestamp=0)

authority = VaultAuthority()
add_authorized_program(authority, True, "engine")
lock_collateral(vault, authority, "engine", 3_000_000)
unlock_collateral(vault, authority, "engine", 1_000_000)
event = withdraw(vault, "alice", vault_ata, user_ata, 5_000_000)

print(vault.total_balance, vault.available_balance, vault.locked_balance)
# 5000000 3000000 2000000
```

Each instruction returns its event (`DepositEvent`, `WithdrawEvent`,
`LockEvent`, `UnLockEvent`, `TransferEvent`). When no `timestamp` is given,
the current Unix time is used. Lock, unlock and `transfer_collateral` need the
calling program to be in the `VaultAuthority` list. If an instruction fails
part-way, the vault and token accounts it touched are restored to their prior
state before the `ProgramError` is raised.

## API envelopes

```python
from collateral_vault.models import ApiResponse, PaginatedResponse, PaginationParams

ApiResponse.succeeded({"total": 5_000_000}).to_dict()
# {'success': True, 'data': {'total': 5000000}}

ApiResponse.failed("Vault not found: abc").to_dict()
# {'success': False, 'error': 'Vault not found: abc'}
```

`PaginationParams.from_dict` uses a limit of 100 and an offset of 0 when those
keys are missing. `PaginatedResponse` sets `has_more` when
`offset + len(items) < total`. `Vault.to_dict` and `Vault.from_dict` convert a
vault record to and from plain JSON-ready values.

## Serving live vault updates

```python
from aiohttp import web
from collateral_vault.websocket import WebSocketRegistry, create_app

registry = WebSocketRegistry()
web.run_app(create_app(registry), port=3000)
```

The endpoint is served at `/ws`. When a client connects, it first receives a
`connected` message that carries its client id. After that it may send any of
the following:

```json
{"type": "subscribe", "vault_pubkey": "..."}
{"type": "unsubscribe", "vault_pubkey": "..."}
{"type": "ping"}
```

The server answers these with `subscribe_ack`, `unsubscribe_ack` or `pong`.
Anything else gets an `error` message with one of these codes:

- `PARSE_ERROR` for text that is not a valid message
- `INVALID_MESSAGE_TYPE` for a valid message a client may not send
- `BINARY_NOT_SUPPORTED` for binary frames

The server sends a WebSocket ping every 5 seconds. It closes the connection
when it has seen no ping or pong from the client (a WebSocket frame or a
`ping` message) for more than 10 seconds.

Server-side code pushes notifications through the registry. These functions
are plain calls; each returns how many clients the message was queued for:

```python
from collateral_vault.websocket import (
    broadcast_deposit, broadcast_tvl_update, get_websocket_stats,
)

broadcast_deposit(vault_pubkey, 1_000_000, tx_signature, 6_000_000, registry)
broadcast_tvl_update(42, 123_000_000, registry)
print(get_websocket_stats(registry))
```

Vault-specific messages go only to the subscribers of that vault. TVL
updates, and alerts with no vault, go to every connected client. Each client
has a queue of up to 1000 pending messages; when it is full the oldest is
dropped. When no registry is passed, a module-wide default registry is used.

`message_to_json` and `parse_message` convert messages to and from their
JSON form, tagged by `type`.

## What the package does not do

The package keeps no storage: the models in `collateral_vault.models` are
plain records, and nothing saves or loads them from a database. There is no
REST API for creating vaults or processing deposits, no client for a
blockchain node, and no command-line program. The instruction functions work
on in-memory `CollateralVault`, `TokenAccount` and `VaultAuthority` objects
that the caller owns. The only network service is the WebSocket endpoint that
`create_app` builds.