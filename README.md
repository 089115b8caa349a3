# relaybridge

Core pieces of a cross-chain bridge relayer for EVM networks. It turns deposit
events into messages in one shared format, routes each batch of messages to
the chain registered for its destination, and votes on the proposals built
from them. The chain clients and contracts it talks to are supplied by the
caller as plain objects with the methods each class expects.

## Installation

From a checkout of the package:

```
pip install .
```

Install with the `test` extra to run the test suite:

```
pip install ".[test]"
pytest
```

## Modules

- `relaybridge.message`: the cross-chain `Message` (with `id()` giving
  `"<source>-<deposit_nonce>"`), `Metadata`, `TransferType` and
  `ProposalStatus`, plus the `PROPOSAL_STATUS_*` constants. It also has
  `adjust_decimals_for_erc20_amount_message_processor`, which builds a
  processor that rescales an ERC20 amount between chains whose tokens have
  different decimals, rounding towards zero when scaling down.
- `relaybridge.relayer`: `Relayer`. `add_relayed_chain` registers a chain by
  its `domain_id`; `route` runs the message processors over a batch and calls
  `write` on the destination chain, reporting to a metrics object through
  `track_deposit_message`, `track_execution_error` and
  `track_successful_execution_latency`. `start` runs every chain's
  `poll_events` in a thread and routes the batches they produce until a
  `threading.Event` is set.
- `relaybridge.deposit_handler`: `erc20_deposit_handler`,
  `erc721_deposit_handler` and `generic_deposit_handler` parse deposit
  calldata into messages, reading an optional priority byte where the format
  has one. `ETHDepositHandler` picks the handler by the handler contract
  address of a resource ID. Bad calldata raises `CalldataError`.
- `relaybridge.event_handler`: `Deposit` and `DepositEventHandler`, which
  fetches the deposits in a block range, skips those that fail, and puts one
  batch per destination on a queue.
- `relaybridge.listener`: `EVMListener.listen_to_events` walks a chain block
  range by block range once ranges have enough confirmations, runs the event
  handlers, retries a range whose handler failed, and stores progress through
  a block storer.
- `relaybridge.message_handler`: `erc20_message_handler`,
  `erc721_message_handler` and `generic_message_handler` encode a message into
  proposal data; `EVMMessageHandler` dispatches on the handler address. A
  malformed payload raises `PayloadError`.
- `relaybridge.proposal`: `Proposal`, with `data_hash()` and `id()` computed
  with Keccak-256.
- `relaybridge.voter`: `EVMVoter.execute` votes on a proposal only when the
  relayer has not voted yet, the proposal is neither executed nor cancelled,
  and the threshold is not already met; it simulates the vote (up to six
  attempts) before sending it. A failed vote raises `VotingError`.
- `relaybridge.store`: `BlockStore` and `NonceStore` on any object with
  `get_by_key` and `set_by_key`, where a missing key raises
  `KeyNotFoundError`. `MemoryKeyValueStore` is an in-memory backend.
- `relaybridge.chain_config`: `Flags`, `GeneralChainConfig`, `EVMConfig` and
  `new_evm_config`, which decodes a chain's settings, fills in defaults,
  validates them and applies command-line overrides. Errors raise
  `ConfigError`.
- `relaybridge.app_config`: `get_config` reads the JSON configuration file
  into `Config` and `RelayerConfig`; `parse_log_level` maps level names such
  as `info` or `warn` to logging levels.
- `relaybridge.secp256k1`: `Keypair` with Ethereum checksum addresses,
  compressed public keys and `R || S || V` signatures;
  `new_keypair_from_private_key`, `new_keypair_from_string`,
  `generate_keypair` and `validate_signature_values`.
- `relaybridge.keystore`: `encrypt` and `decrypt` with AES-GCM under a key
  derived from the password, keystore files through
  `encrypt_and_write_to_file` and `read_from_file_and_decrypt`,
  `get_password` for a terminal prompt, and the well-known test keys (alice,
  bob, charlie, dave, eve) in `TEST_KEY_RING` and
  `insecure_keypair_from_address`.
- `relaybridge.gas_pricer`: `StaticGasPriceDeterminant`, which adds a fixed
  premium per priority (0 slow, 2 fast, anything else medium) to the price a
  client suggests.
- `relaybridge.cli_utils`: `validate_simulate_flags` checks a transaction hash
  and sender address and returns them as bytes, raising `FlagError`.
- `relaybridge.log_setup`: `configure_logger` sets the global log level and
  writes every record as a JSON line to each given writer.

## Examples

```python
from relaybridge.message import Message, adjust_decimals_for_erc20_amount_message_processor

amount = 145556700000000000000  # 145.5567 tokens with 18 decimals
msg = Message(source=1, destination=2, payload=[amount.to_bytes(9, "big")])

process = adjust_decimals_for_erc20_amount_message_processor({1: 18, 2: 2})
process(msg)
assert int.from_bytes(msg.payload[0], "big") == 14555
```

```python
from relaybridge.store import BlockStore, MemoryKeyValueStore

blocks = BlockStore(MemoryKeyValueStore())
blocks.store_block(120, 5)
assert blocks.get_start_block(5, 100, latest=False, fresh=False) == 120
```

```python
from relaybridge.keystore import decrypt, encrypt

password = b"password"
ciphertext = encrypt(b"hello", password)
assert decrypt(ciphertext, password) == b"hello"
```

## What it does not do

- It has no command to run: there is no program entry point, only the
  library and its flag validation.
- It does not connect to any chain. Chain clients, bridge contracts, event
  fetching and transaction sending are supplied by the caller.
- The only storage backend is `MemoryKeyValueStore`; nothing is kept on disk
  between runs.
- Metrics are only called through the methods the relayer and listener
  expect; nothing here collects or exports them.
- Keystore files hold secp256k1 keys only. sr25519 keys cannot be decoded,
  and the substrate test keys carry just their address and public key.