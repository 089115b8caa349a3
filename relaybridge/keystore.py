"""Password-encrypted keystore files and the insecure test keyring."""

from __future__ import annotations

import base64
import binascii
import getpass
import hashlib
import json
import os
from dataclasses import dataclass, field
from typing import IO, Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from relaybridge.secp256k1 import (
    PRIVATE_KEY_LENGTH,
    KeyType,
    Keypair,
    new_keypair_from_private_key,
)

NONCE_SIZE = 12

ALICE_KEY = "alice"
BOB_KEY = "bob"
CHARLIE_KEY = "charlie"
DAVE_KEY = "dave"
EVE_KEY = "eve"

KEYS = (ALICE_KEY, BOB_KEY, CHARLIE_KEY, DAVE_KEY, EVE_KEY)

ETH_CHAIN = "ethereum"
SUB_CHAIN = "substrate"

_INPUT_PROMPT = "> "


class KeystoreError(ValueError):
    """Raised when a key cannot be encrypted, decrypted or looked up."""


def _type_name(keytype: Any) -> str:
    if isinstance(keytype, KeyType):
        return keytype.value
    return str(keytype)


def _aead_from_passphrase(password: bytes) -> AESGCM:
    """Create the symmetric AES-GCM cipher derived from ``password``."""
    key = hashlib.blake2b(bytes(password), digest_size=32).digest()
    return AESGCM(key)


def encrypt(msg: bytes, password: bytes) -> bytes:
    """Encrypt ``msg`` with AES-GCM; the random nonce is prepended to the result."""
    nonce = os.urandom(NONCE_SIZE)
    return nonce + _aead_from_passphrase(password).encrypt(nonce, bytes(msg), None)


def decrypt(data: bytes, password: bytes) -> bytes:
    """Decrypt data produced by :func:`encrypt` with the same password."""
    data = bytes(data)
    if len(data) < NONCE_SIZE:
        raise KeystoreError("ciphertext too short")
    nonce, ciphertext = data[:NONCE_SIZE], data[NONCE_SIZE:]
    try:
        return _aead_from_passphrase(password).decrypt(nonce, ciphertext, None)
    except InvalidTag:
        raise KeystoreError(
            "cipher: message authentication failed. Incorrect Password."
        ) from None


def encrypt_keypair(kp: Keypair, password: bytes) -> bytes:
    """Encrypt the encoded keypair with ``password``."""
    return encrypt(kp.encode(), password)


def decode_keypair(data: bytes, keytype: Any) -> Keypair:
    """Turn decrypted key bytes into a keypair of ``keytype``."""
    name = _type_name(keytype)
    if name == KeyType.SECP256K1.value:
        try:
            return new_keypair_from_private_key(data)
        except ValueError as err:
            raise KeystoreError(str(err)) from err
    if name == KeyType.SR25519.value:
        raise KeystoreError("cannot decode key: sr25519 keys are not supported")
    raise KeystoreError("cannot decode key: invalid key type")


def decrypt_keypair(expected_pub_k: str, data: bytes, password: bytes, keytype: Any) -> Keypair:
    """Decrypt a keypair and check it against the expected public key."""
    kp = decode_keypair(decrypt(data, password), keytype)
    if kp.public_key() != expected_pub_k:
        raise KeystoreError(
            "unexpected key file data, file may be corrupt or have been tampered with"
        )
    return kp


@dataclass
class EncryptedKeystore:
    """The content of a keystore file."""

    type: str = ""
    public_key: str = ""
    address: str = ""
    ciphertext: bytes = b""

    def to_json(self) -> str:
        """Serialise as indented JSON with the ciphertext in base64."""
        document = {
            "type": self.type,
            "publicKey": self.public_key,
            "address": self.address,
            "ciphertext": base64.b64encode(self.ciphertext).decode("ascii"),
        }
        return json.dumps(document, indent="\t")

    @classmethod
    def from_json(cls, text: str | bytes) -> "EncryptedKeystore":
        """Parse the JSON of a keystore file."""
        try:
            document = json.loads(text)
        except json.JSONDecodeError as err:
            raise KeystoreError(f"invalid keystore file: {err}") from err
        if not isinstance(document, dict):
            raise KeystoreError("invalid keystore file: not a JSON object")
        ciphertext = document.get("ciphertext") or ""
        try:
            raw = base64.b64decode(ciphertext, validate=True)
        except (binascii.Error, TypeError) as err:
            raise KeystoreError(f"invalid keystore ciphertext: {err}") from err
        return cls(
            type=str(document.get("type") or ""),
            public_key=str(document.get("publicKey") or ""),
            address=str(document.get("address") or ""),
            ciphertext=raw,
        )


def encrypt_and_write_to_file(file: IO[str], kp: Keypair, password: bytes) -> None:
    """Encrypt ``kp`` with ``password`` and write it as a keystore document to ``file``."""
    if not isinstance(kp, Keypair):
        raise KeystoreError("cannot write key not of type secp256k1 or sr25519")
    keydata = EncryptedKeystore(
        type=KeyType.SECP256K1.value,
        public_key=kp.public_key(),
        address=kp.address(),
        ciphertext=encrypt_keypair(kp, password),
    )
    file.write(keydata.to_json() + "\n")


def read_from_file_and_decrypt(filename: str | os.PathLike[str], password: bytes, keytype: Any) -> Keypair:
    """Read a keystore file and decrypt its keypair with ``password``."""
    path = os.path.abspath(filename)
    with open(path, "rb") as handle:
        keydata = EncryptedKeystore.from_json(handle.read())
    expected = _type_name(keytype)
    if expected != keydata.type:
        raise KeystoreError(
            "Keystore type and Chain type mismatched. Expected Keystore file of type "
            f"{expected}, got type {keydata.type}"
        )
    return decrypt_keypair(keydata.public_key, keydata.ciphertext, password, keydata.type)


def get_password(msg: str) -> bytes:
    """Prompt on the terminal until a password is entered."""
    while True:
        print(msg)
        try:
            entered = getpass.getpass(_INPUT_PROMPT)
        except OSError as err:
            print(f"invalid input: {err}")
            continue
        print()
        return entered.encode()


@dataclass(frozen=True)
class SubstrateKeyringPair:
    """A well-known substrate development account."""

    uri: str
    ss58_address: str
    public_key_bytes: bytes = field(repr=False)

    def address(self) -> str:
        """The ss58 formatted address."""
        return self.ss58_address

    def public_key(self) -> str:
        """The public key, hex encoded with a 0x prefix."""
        return "0x" + self.public_key_bytes.hex()


ALICE_SR25519 = SubstrateKeyringPair(
    "//Alice",
    "5GrwvaEF5zXb26Fz9rcQpDWS57CtERHpNehXCPcNoHGKutQY",
    bytes.fromhex("d43593c715fdd31c61141abd04a99fd6822c8558854ccde39a5684e7a56da27d"),
)
BOB_SR25519 = SubstrateKeyringPair(
    "//Bob",
    "5FHneW46xGXgs5mUiveU4sbTyGBzmstUspZC92UhjJM694ty",
    bytes.fromhex("8eaf04151687736326c9fea17e25fc5287613693c912909cb226aa4794f26a48"),
)
CHARLIE_SR25519 = SubstrateKeyringPair(
    "//Charlie",
    "5FLSigC9HGRKVhB9FiEo4Y3koPsNmBmLJbpXg2mp1hXcS59Y",
    bytes.fromhex("90b5ab205c6974c9ea841be688864633dc9ca8a357843eeacf2314649965fe22"),
)
DAVE_SR25519 = SubstrateKeyringPair(
    "//Dave",
    "5DAAnrj7VHTznn2AWBemMuyBwZWs6FNFjdyVXUeYum3PTXFy",
    bytes.fromhex("306721211d5404bd9da88e0204360a1a9ab8b87c66c1bc2fcdd37f3c2222cc20"),
)
EVE_SR25519 = SubstrateKeyringPair(
    "//Eve",
    "5HGjWAeFDfFCWPsjFQdVV2Msvz2XtMktvgocEZcCj68kUMaw",
    bytes.fromhex("e659a7a1628cdd93febc04a4e0646ea20e9f5f0ce097d9a05290d4a9e054df4e"),
)


def pad_with_zeros(key: bytes, target_length: int) -> bytes:
    """Left-pad ``key`` with zero bytes up to ``target_length``."""
    key = bytes(key)
    return bytes(max(target_length - len(key), 0)) + key


def _make_eth_ring() -> dict[str, Keypair]:
    return {
        name: new_keypair_from_private_key(pad_with_zeros(name.encode(), PRIVATE_KEY_LENGTH))
        for name in KEYS
    }


@dataclass
class KeyRing:
    """The well-known test keys for each chain type."""

    ethereum_keys: dict[str, Keypair] = field(default_factory=_make_eth_ring)
    substrate_keys: dict[str, SubstrateKeyringPair] = field(
        default_factory=lambda: {
            ALICE_KEY: ALICE_SR25519,
            BOB_KEY: BOB_SR25519,
            CHARLIE_KEY: CHARLIE_SR25519,
            DAVE_KEY: DAVE_SR25519,
            EVE_KEY: EVE_SR25519,
        }
    )


TEST_KEY_RING = KeyRing()


def insecure_keypair_from_address(key: str, chain_type: str) -> Keypair | SubstrateKeyringPair:
    """Resolve a test key name such as ``alice`` to its keypair for ``chain_type``."""
    if chain_type == ETH_CHAIN:
        ring: dict[str, Any] = TEST_KEY_RING.ethereum_keys
    elif chain_type == SUB_CHAIN:
        ring = TEST_KEY_RING.substrate_keys
    else:
        raise KeystoreError(f"unrecognized chain type: {chain_type}")
    try:
        return ring[key]
    except KeyError:
        raise KeystoreError(f"invalid test key selection: {key}") from None