from .user_service import create_user, get_current_user, get_user, check_users_exist
from .wallet_service import generate_challenge, link_new_wallet

__all__ = ["create_user", "get_current_user", "get_user", "check_users_exist", "generate_challenge", "link_new_wallet"]
