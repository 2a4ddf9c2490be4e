import pytest
from sqlalchemy import event, text

from app.errors import ErrorKind, UserServiceError
from app.models import InviteCode, User
from app.services.user_service import create_user
from helpers import EMBEDDED_WALLET


async def test_create_user_consumes_invite_code(db, privy, make_code, fetch):
    code = await make_code("ABC123", max_uses=1)
    privy.add_user("did:privy:alice")

    user = await create_user(db, privy, "did:privy:alice", "ABC123")

    assert user.id is not None
    assert user.privy_user_id == "did:privy:alice"
    assert user.wallet == EMBEDDED_WALLET.lower()
    assert user.invited_by_id == code.id
    assert user.is_active is True
    assert user.social_wallet is None

    stored_code = await fetch(InviteCode, InviteCode.id == code.id)
    assert stored_code.used == 1


async def test_create_user_rejects_code_once_cap_is_reached(session_factory, privy, make_code, fetch, count):
    await make_code("ABC123", max_uses=1)
    privy.add_user("did:privy:alice")
    privy.add_user("did:privy:bob", wallet="0x" + "b" * 40)

    async with session_factory() as db:
        await create_user(db, privy, "did:privy:alice", "ABC123")

    async with session_factory() as db:
        with pytest.raises(UserServiceError) as exc_info:
            await create_user(db, privy, "did:privy:bob", "ABC123")

    assert exc_info.value.kind == ErrorKind.CODE_ALREADY_USED
    assert (await fetch(InviteCode, InviteCode.code == "ABC123")).used == 1
    assert await count(User) == 1


async def test_create_user_with_exhausted_code_leaves_counter_unchanged(db, privy, make_code, fetch, count):
    await make_code("FULL01", max_uses=3, used=3)
    privy.add_user("did:privy:alice")

    with pytest.raises(UserServiceError) as exc_info:
        await create_user(db, privy, "did:privy:alice", "FULL01")

    assert exc_info.value.kind == ErrorKind.CODE_ALREADY_USED
    assert (await fetch(InviteCode, InviteCode.code == "FULL01")).used == 3
    assert await count(User) == 0


async def test_create_user_trims_invite_code(db, privy, make_code):
    await make_code("ABC123", max_uses=5)
    privy.add_user("did:privy:alice")

    user = await create_user(db, privy, "did:privy:alice", "  ABC123\n")

    assert user.id is not None


async def test_create_user_unknown_identity_is_unauthorized(db, privy, make_code):
    await make_code("ABC123")

    with pytest.raises(UserServiceError) as exc_info:
        await create_user(db, privy, "did:privy:ghost", "ABC123")

    assert exc_info.value.kind == ErrorKind.UNAUTHORIZED


async def test_create_user_twice_fails_with_already_exists(db, privy, make_code, make_user, fetch):
    await make_code("ABC123", max_uses=5)
    await make_user("did:privy:alice", EMBEDDED_WALLET)
    privy.add_user("did:privy:alice")

    with pytest.raises(UserServiceError) as exc_info:
        await create_user(db, privy, "did:privy:alice", "ABC123")

    assert exc_info.value.kind == ErrorKind.USER_ALREADY_EXISTS
    assert (await fetch(InviteCode, InviteCode.code == "ABC123")).used == 0


async def test_create_user_requires_embedded_wallet(db, privy, make_code):
    await make_code("ABC123")
    privy.add_user("did:privy:alice", embedded=False)

    with pytest.raises(UserServiceError) as exc_info:
        await create_user(db, privy, "did:privy:alice", "ABC123")

    assert exc_info.value.kind == ErrorKind.WALLET_MISSING


async def test_create_user_without_any_wallet(db, privy, make_code):
    await make_code("ABC123")
    privy.add_user("did:privy:alice", wallet=None)

    with pytest.raises(UserServiceError) as exc_info:
        await create_user(db, privy, "did:privy:alice", "ABC123")

    assert exc_info.value.kind == ErrorKind.WALLET_MISSING


@pytest.mark.parametrize("code_text", ["NOPE00", ""])
async def test_create_user_unknown_code(db, privy, make_code, code_text):
    await make_code("ABC123")
    privy.add_user("did:privy:alice")

    with pytest.raises(UserServiceError) as exc_info:
        await create_user(db, privy, "did:privy:alice", code_text)

    assert exc_info.value.kind == ErrorKind.INVALID_INVITE_CODE


async def test_create_user_inactive_code(db, privy, make_code, fetch):
    await make_code("OFF123", is_active=False)
    privy.add_user("did:privy:alice")

    with pytest.raises(UserServiceError) as exc_info:
        await create_user(db, privy, "did:privy:alice", "OFF123")

    assert exc_info.value.kind == ErrorKind.INVALID_INVITE_CODE
    assert (await fetch(InviteCode, InviteCode.code == "OFF123")).used == 0


async def test_create_user_rolls_back_code_usage_when_insert_fails(db, privy, make_code, make_user, fetch, count):
    # Another account already owns the embedded wallet, so the insert violates
    # the unique constraint after the usage counter was incremented.
    await make_code("ABC123", max_uses=2)
    await make_user("did:privy:other", EMBEDDED_WALLET)
    privy.add_user("did:privy:alice")

    with pytest.raises(UserServiceError) as exc_info:
        await create_user(db, privy, "did:privy:alice", "ABC123")

    assert exc_info.value.kind == ErrorKind.USER_ALREADY_EXISTS
    assert (await fetch(InviteCode, InviteCode.code == "ABC123")).used == 0
    assert await count(User) == 1


async def test_validation_order_checks_wallet_before_code(db, privy):
    privy.add_user("did:privy:alice", embedded=False)

    with pytest.raises(UserServiceError) as exc_info:
        await create_user(db, privy, "did:privy:alice", "NOPE00")

    assert exc_info.value.kind == ErrorKind.WALLET_MISSING


async def test_create_user_loses_race_for_last_code_use(db, privy, make_code, count):
    await make_code("ABC123", max_uses=1)
    privy.add_user("did:privy:alice")

    # Another registration takes the last use right before this one increments the counter
    def take_last_use(orm_execute_state):
        if orm_execute_state.is_update:
            orm_execute_state.session.connection().execute(text("UPDATE invite_codes SET used = max_uses"))

    event.listen(db.sync_session, "do_orm_execute", take_last_use)

    with pytest.raises(UserServiceError) as exc_info:
        await create_user(db, privy, "did:privy:alice", "ABC123")

    assert exc_info.value.kind == ErrorKind.CODE_ALREADY_USED
    assert await count(User) == 0
