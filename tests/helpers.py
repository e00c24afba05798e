"""
Signing helpers and test doubles shared by the test modules.
"""
from eth_account.messages import encode_defunct

from siwe_auth.services.siwe import SiweMessage

PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe512961708279f8d5e7f5e8b2e4e8b7"
OTHER_PRIVATE_KEY = "0x5c0883a69102937d6231471b5dbb6204fe512961708279f8d5e7f5e8b2e4e8b8"

APP_DOMAIN = "app.example"
APP_ORIGIN = "https://app.example"


class FakeRedis:
    """In-memory stand-in for the few Redis commands the nonce store uses."""

    def __init__(self):
        self.data = {}
        self.ttls = {}

    def setex(self, key, ttl, value):
        self.data[key] = value
        self.ttls[key] = ttl
        return True

    def get(self, key):
        return self.data.get(key)

    def getdel(self, key):
        self.ttls.pop(key, None)
        return self.data.pop(key, None)


def build_message(address: str, nonce: str, **overrides) -> SiweMessage:
    fields = dict(
        domain=APP_DOMAIN,
        address=address,
        statement="Sign in with Ethereum to the app.",
        uri=APP_ORIGIN,
        version="1",
        chain_id=1,
        nonce=nonce,
        issued_at="2026-10-19T10:00:00Z",
    )
    fields.update(overrides)
    return SiweMessage(**fields)


def sign(account, message: SiweMessage) -> str:
    signed = account.sign_message(encode_defunct(text=message.prepare_message()))
    return signed.signature.hex()
