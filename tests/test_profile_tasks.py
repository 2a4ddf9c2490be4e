from contextlib import contextmanager

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session

from app.database import Base
from app.models import RecommendedUser, SocialProfile, User
from app.schemas.recommendations import ProviderRecommendation
from app.schemas.social_profiles import ProviderSocialProfile, SocialProfileType
from app.services import profile_refresh
from app.services.profile_refresh import schedule_profile_refresh
from app.tasks import profile_tasks
from app.tasks.utils import store_recommendations, store_social_profiles

OWNER_SOCIAL = "0x" + "1" * 40
FRIEND_SOCIAL = "0x" + "2" * 40


@pytest.fixture
def sync_db():
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    engine.dispose()


@pytest.fixture
def owner(sync_db):
    user = User(privy_user_id="did:privy:owner", wallet="0x" + "a" * 40, social_wallet=OWNER_SOCIAL)
    friend = User(privy_user_id="did:privy:friend", wallet="0x" + "b" * 40, social_wallet=FRIEND_SOCIAL)
    sync_db.add_all([user, friend])
    sync_db.commit()
    return user


def test_store_social_profiles_replaces_existing_rows(sync_db, owner):
    sync_db.add(SocialProfile(user_id=owner.id, type=SocialProfileType.LENS, profile_name="old.lens"))
    sync_db.commit()

    store_social_profiles(sync_db, owner.id, [
        ProviderSocialProfile(type=SocialProfileType.FARCASTER, profile_name="owner", bio="builder"),
        ProviderSocialProfile(type=SocialProfileType.ENS, profile_name="owner.eth"),
    ])
    sync_db.commit()

    profiles = sync_db.execute(select(SocialProfile).where(SocialProfile.user_id == owner.id)).scalars().all()
    assert sorted(profile.profile_name for profile in profiles) == ["owner", "owner.eth"]


def test_store_social_profiles_keeps_one_profile_per_network(sync_db, owner):
    stored = store_social_profiles(sync_db, owner.id, [
        ProviderSocialProfile(type=SocialProfileType.FARCASTER, profile_name="first"),
        ProviderSocialProfile(type=SocialProfileType.FARCASTER, profile_name="second"),
    ])

    assert [profile.profile_name for profile in stored] == ["second"]


def test_store_recommendations_links_registered_wallets(sync_db, owner):
    outsider = "0x" + "7" * 40
    sync_db.add(RecommendedUser(for_id=owner.id, wallet="0x" + "9" * 40, recommendation_score=1))
    sync_db.commit()

    stored = store_recommendations(sync_db, OWNER_SOCIAL.upper().replace("0X", "0x"), [
        ProviderRecommendation(wallet=FRIEND_SOCIAL.upper().replace("0X", "0x"), recommendation_score=8.5),
        ProviderRecommendation(wallet=outsider, display_name="outsider", recommendation_score=2),
        ProviderRecommendation(wallet=OWNER_SOCIAL, recommendation_score=99),
    ])
    sync_db.commit()

    rows = sync_db.execute(
        select(RecommendedUser).where(RecommendedUser.for_id == owner.id).order_by(RecommendedUser.recommendation_score.desc())
    ).scalars().all()
    assert len(stored) == 2
    assert [(row.wallet, row.user_id is not None) for row in rows] == [(FRIEND_SOCIAL, True), (outsider, False)]


def test_store_recommendations_for_unlinked_wallet(sync_db, owner):
    assert store_recommendations(sync_db, "0x" + "5" * 40, []) is None


def test_refresh_user_social_profiles_task(sync_db, owner, monkeypatch):
    class FakeSocialDataClient:
        def get_social_profiles(self, wallet):
            assert wallet == OWNER_SOCIAL
            return [ProviderSocialProfile(type=SocialProfileType.TALENT_PROTOCOL, profile_name="owner")]

    @contextmanager
    def fake_get_db():
        yield sync_db
        sync_db.commit()

    monkeypatch.setattr(profile_tasks, "SocialDataClient", FakeSocialDataClient)
    monkeypatch.setattr(profile_tasks, "get_db", fake_get_db)

    result = profile_tasks.refresh_user_social_profiles(owner.id, OWNER_SOCIAL)

    assert result == {"status": "success", "user_id": owner.id, "profile_count": 1}


class RecordingTask:
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def delay(self, *args):
        if self.error:
            raise self.error
        self.calls.append(args)


def test_schedule_profile_refresh_enqueues_both_tasks(monkeypatch):
    profiles_task, recommendations_task = RecordingTask(), RecordingTask()
    monkeypatch.setattr(profile_refresh, "refresh_user_social_profiles", profiles_task)
    monkeypatch.setattr(profile_refresh, "update_recommendations", recommendations_task)

    assert schedule_profile_refresh(7, OWNER_SOCIAL.upper().replace("0X", "0x")) is True
    assert profiles_task.calls == [(7, OWNER_SOCIAL)]
    assert recommendations_task.calls == [(OWNER_SOCIAL,)]


def test_schedule_profile_refresh_swallows_broker_errors(monkeypatch):
    monkeypatch.setattr(profile_refresh, "refresh_user_social_profiles", RecordingTask(error=ConnectionError("broker down")))
    monkeypatch.setattr(profile_refresh, "update_recommendations", RecordingTask())

    assert schedule_profile_refresh(7, OWNER_SOCIAL) is False
