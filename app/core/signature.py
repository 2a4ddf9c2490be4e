import logging

from eth_account import Account
from eth_account.messages import encode_defunct

logger = logging.getLogger(__name__)


def verify_message(address: str, message: str, signature: str) -> bool:
    """
    Check that ``signature`` is an EIP-191 personal signature of ``message``
    made by the key behind ``address``.

    A malformed signature is reported as a failed verification.
    """
    try:
        recovered = Account.recover_message(encode_defunct(text=message), signature=signature)
    except Exception as e:
        logger.warning(f"Could not recover signer for {address}: {e}")
        return False

    return recovered.lower() == address.lower()
