# siwe_auth/services/siwe.py
from __future__ import annotations

import json
import re
import secrets
import string
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from eth_account import Account
from eth_account.messages import encode_defunct
from web3 import Web3

from siwe_auth.core.errors import MalformedMessage


# EIP-4361 message format:
# <domain> wants you to sign in with your Ethereum account:
# <address>
#
# <statement?>
#
# URI: <uri>
# Version: 1
# Chain ID: <chain_id>
# Nonce: <nonce>
# Issued At: <rfc3339>
# Expiration Time: <rfc3339>   (optional)
# Not Before: <rfc3339>        (optional)
# Request ID: <text>           (optional)
# Resources:                   (optional)
# - <uri>
HEADER_SUFFIX = " wants you to sign in with your Ethereum account:"

HEADER_RE = re.compile(r"^(?P<domain>[^\s/][^\s]*)" + re.escape(HEADER_SUFFIX) + r"$")
ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
NONCE_RE = re.compile(r"^[A-Za-z0-9]{8,}$")
CHAIN_ID_RE = re.compile(r"^(0|[1-9][0-9]*)$")
RFC3339_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})$"
)

NONCE_ALPHABET = string.ascii_letters + string.digits
NONCE_LENGTH = 17

# (label, attribute, required) in canonical order
TAGGED_FIELDS = (
    ("URI", "uri", True),
    ("Version", "version", True),
    ("Chain ID", "chain_id", True),
    ("Nonce", "nonce", True),
    ("Issued At", "issued_at", True),
    ("Expiration Time", "expiration_time", False),
    ("Not Before", "not_before", False),
    ("Request ID", "request_id", False),
)

# JSON keys posted by browser SIWE clients
JSON_KEYS = {
    "domain": "domain",
    "address": "address",
    "statement": "statement",
    "uri": "uri",
    "version": "version",
    "chainId": "chain_id",
    "nonce": "nonce",
    "issuedAt": "issued_at",
    "expirationTime": "expiration_time",
    "notBefore": "not_before",
    "requestId": "request_id",
    "resources": "resources",
}


@dataclass
class SiweMessage:
    domain: str
    address: str
    uri: str
    version: str
    chain_id: int
    nonce: str
    issued_at: str
    statement: Optional[str] = None
    expiration_time: Optional[str] = None
    not_before: Optional[str] = None
    request_id: Optional[str] = None
    resources: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Raise MalformedMessage unless every field fits EIP-4361."""
        if not self.domain or not HEADER_RE.match(self.domain + HEADER_SUFFIX):
            raise MalformedMessage("Missing or invalid domain")
        if not isinstance(self.address, str) or not ADDRESS_RE.match(self.address):
            raise MalformedMessage("Missing or invalid address")
        if not Web3.is_checksum_address(self.address):
            raise MalformedMessage("Address is not EIP-55 checksummed")
        if self.statement is not None and ("\n" in self.statement or not self.statement):
            raise MalformedMessage("Statement must be a single non-empty line")
        if not self.uri or "\n" in self.uri:
            raise MalformedMessage("Missing or invalid URI")
        if self.version != "1":
            raise MalformedMessage("Unsupported version")
        if isinstance(self.chain_id, bool) or not isinstance(self.chain_id, int) or self.chain_id < 0:
            raise MalformedMessage("Missing or invalid chain id")
        if not isinstance(self.nonce, str) or not NONCE_RE.match(self.nonce):
            raise MalformedMessage("Missing or invalid nonce")
        for label, value in (
            ("Issued At", self.issued_at),
            ("Expiration Time", self.expiration_time),
            ("Not Before", self.not_before),
        ):
            if value is not None and _parse_timestamp(value) is None:
                raise MalformedMessage(f"Invalid timestamp in {label}")
        if self.request_id is not None and "\n" in self.request_id:
            raise MalformedMessage("Invalid request id")
        for resource in self.resources:
            if not resource or "\n" in resource:
                raise MalformedMessage("Invalid resource")

    def prepare_message(self) -> str:
        """Canonical EIP-4361 text, the exact string a wallet signs."""
        prefix = f"{self.domain}{HEADER_SUFFIX}\n{self.address}"
        if self.statement is not None:
            prefix = f"{prefix}\n\n{self.statement}\n"
        else:
            prefix = f"{prefix}\n\n"

        suffix = [
            f"URI: {self.uri}",
            f"Version: {self.version}",
            f"Chain ID: {self.chain_id}",
            f"Nonce: {self.nonce}",
            f"Issued At: {self.issued_at}",
        ]
        if self.expiration_time is not None:
            suffix.append(f"Expiration Time: {self.expiration_time}")
        if self.not_before is not None:
            suffix.append(f"Not Before: {self.not_before}")
        if self.request_id is not None:
            suffix.append(f"Request ID: {self.request_id}")
        if self.resources:
            suffix.append("\n".join(["Resources:"] + [f"- {r}" for r in self.resources]))

        return prefix + "\n" + "\n".join(suffix)

    def to_bytes(self) -> bytes:
        return self.prepare_message().encode("utf-8")

    @property
    def expiration_time_dt(self) -> Optional[datetime]:
        return _parse_timestamp(self.expiration_time) if self.expiration_time else None

    @property
    def not_before_dt(self) -> Optional[datetime]:
        return _parse_timestamp(self.not_before) if self.not_before else None


def _parse_timestamp(value: str) -> Optional[datetime]:
    if not isinstance(value, str) or not RFC3339_RE.match(value):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed.astimezone(timezone.utc)


def generate_nonce() -> str:
    # alphanumeric only, EIP-4361 forbids other characters
    return "".join(secrets.choice(NONCE_ALPHABET) for _ in range(NONCE_LENGTH))


def parse_siwe_message(message: str) -> SiweMessage:
    """
    Parse canonical EIP-4361 text into a SiweMessage.

    Raises:
        MalformedMessage: If a required line is missing, a field is invalid,
            or there is content after the last recognised field.
    """
    if not isinstance(message, str) or not message:
        raise MalformedMessage("Empty message")

    lines = message.split("\n")
    if len(lines) < 3:
        raise MalformedMessage("Message is truncated")

    header = HEADER_RE.match(lines[0])
    if not header:
        raise MalformedMessage("Missing or invalid domain")
    domain = header.group("domain")

    address = lines[1]
    if not ADDRESS_RE.match(address):
        raise MalformedMessage("Missing or invalid address")

    if lines[2] != "":
        raise MalformedMessage("Expected blank line after address")

    idx = 3
    statement = None
    # without a statement this line is blank
    if idx < len(lines) and lines[idx] != "":
        statement = lines[idx]
        idx += 1
    if idx >= len(lines) or lines[idx] != "":
        raise MalformedMessage("Expected blank line before URI")
    idx += 1

    values = {}
    for label, attr, required in TAGGED_FIELDS:
        tag = f"{label}: "
        if idx < len(lines) and lines[idx].startswith(tag):
            values[attr] = lines[idx][len(tag):]
            idx += 1
        elif required:
            raise MalformedMessage(f"Missing {label}")

    resources: List[str] = []
    if idx < len(lines) and lines[idx] == "Resources:":
        idx += 1
        while idx < len(lines) and lines[idx].startswith("- "):
            resources.append(lines[idx][2:])
            idx += 1

    if idx != len(lines):
        raise MalformedMessage("Unexpected content after message fields")

    chain_id = values["chain_id"]
    if not CHAIN_ID_RE.match(chain_id):
        raise MalformedMessage("Missing or invalid chain id")

    return SiweMessage(
        domain=domain,
        address=address,
        uri=values["uri"],
        version=values["version"],
        chain_id=int(chain_id),
        nonce=values["nonce"],
        issued_at=values["issued_at"],
        statement=statement,
        expiration_time=values.get("expiration_time"),
        not_before=values.get("not_before"),
        request_id=values.get("request_id"),
        resources=resources,
    )


def siwe_message_from_fields(fields: dict) -> SiweMessage:
    """Build a SiweMessage from the camelCase JSON object browser clients post."""
    unknown = set(fields) - set(JSON_KEYS)
    if unknown:
        raise MalformedMessage(f"Unknown fields: {', '.join(sorted(unknown))}")

    kwargs = {JSON_KEYS[key]: value for key, value in fields.items() if value is not None}
    missing = {"domain", "address", "uri", "version", "chain_id", "nonce", "issued_at"} - set(kwargs)
    if missing:
        raise MalformedMessage(f"Missing fields: {', '.join(sorted(missing))}")

    chain_id = kwargs["chain_id"]
    if isinstance(chain_id, str) and CHAIN_ID_RE.match(chain_id):
        kwargs["chain_id"] = int(chain_id)
    if "resources" in kwargs and not isinstance(kwargs["resources"], list):
        raise MalformedMessage("Invalid resources")

    try:
        return SiweMessage(**kwargs)
    except TypeError:
        raise MalformedMessage("Invalid field types")


def load_siwe_message(raw: str) -> SiweMessage:
    """Accept either canonical text or its JSON field object."""
    if isinstance(raw, str) and raw.lstrip().startswith("{"):
        try:
            fields = json.loads(raw)
        except ValueError:
            raise MalformedMessage("Invalid JSON message")
        if not isinstance(fields, dict):
            raise MalformedMessage("Invalid JSON message")
        return siwe_message_from_fields(fields)
    return parse_siwe_message(raw)


def recover_address(message: str, signature: str) -> str:
    # SIWE uses EIP-191 personal_sign style. In web3.py:
    # encode_defunct(text=message) matches personal_sign.
    msg = encode_defunct(text=message)
    recovered = Account.recover_message(msg, signature=signature)
    return Web3.to_checksum_address(recovered)
