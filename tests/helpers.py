from typing import Dict, Optional

from eth_account import Account
from eth_account.messages import encode_defunct

from app.core.privy_client import LinkedAccount, PrivyUser

ALICE_KEY = "0x" + "11" * 32
BOB_KEY = "0x" + "22" * 32
EMBEDDED_WALLET = "0xAbCdEf0123456789aBcDeF0123456789AbCdEf01"


def sign(message: str, private_key: str) -> str:
    signed = Account.sign_message(encode_defunct(text=message), private_key=private_key)
    return "0x" + bytes(signed.signature).hex()


def address_of(private_key: str) -> str:
    return Account.from_key(private_key).address


class FakePrivyClient:
    """Stands in for the Privy API; users are registered by the tests."""

    def __init__(self):
        self.users: Dict[str, PrivyUser] = {}

    def add_user(self, privy_user_id: str, wallet: Optional[str] = EMBEDDED_WALLET, embedded: bool = True) -> PrivyUser:
        accounts = [LinkedAccount(type="email")]
        if wallet:
            accounts.append(LinkedAccount(
                type="wallet",
                address=wallet,
                chain_type="ethereum",
                wallet_client_type="privy" if embedded else "metamask",
                connector_type="embedded" if embedded else "injected"
            ))
        user = PrivyUser(id=privy_user_id, linked_accounts=accounts)
        self.users[privy_user_id] = user
        return user

    async def get_user(self, privy_user_id: str) -> Optional[PrivyUser]:
        return self.users.get(privy_user_id)
