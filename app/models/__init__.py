from .invite_code import InviteCode
from .user import User
from .signing_challenge import SigningChallenge
from .social_profile import SocialProfile
from .recommended_user import RecommendedUser

__all__ = ["InviteCode", "User", "SigningChallenge", "SocialProfile", "RecommendedUser"]
