import pytest

from happytrails.core.errors import AuthError
from happytrails.services.auth_service import USER_KEY, LocalAuthProvider, VisitorSession
from happytrails.services.local_storage import PROFILES_KEY, LocalStorage


@pytest.mark.asyncio
async def test_sign_up_then_reload_restores_same_identity(auth, visitor, tmp_path):
    identity = await auth.sign_up(visitor, "pup@example.com", "password123", "Pup Parent")
    assert visitor.user == identity
    assert identity.name == "Pup Parent"

    # Same cookie, new process
    reloaded = LocalAuthProvider(LocalStorage(str(tmp_path / "local_storage.json")))
    next_request = VisitorSession(visitor.data)
    restored = await reloaded.restore(next_request)
    assert restored.id == identity.id
    assert restored.email == identity.email
    assert next_request.user == restored

@pytest.mark.asyncio
async def test_identity_lives_in_the_cookie_not_the_file(auth, visitor, storage):
    await auth.sign_up(visitor, "pup@example.com", "password123", "Pup Parent")

    assert visitor.data[USER_KEY]["email"] == "pup@example.com"
    assert await auth.restore(VisitorSession({})) is None
    assert storage.get_item(PROFILES_KEY)[visitor.user.id]["name"] == "Pup Parent"

@pytest.mark.asyncio
async def test_name_defaults_to_email(auth, visitor):
    identity = await auth.sign_in(visitor, "noname@example.com", "x")
    assert identity.name == "noname@example.com"

@pytest.mark.asyncio
async def test_sign_in_without_name_keeps_sign_up_name(auth, visitor):
    await auth.sign_up(visitor, "pup@example.com", "password123", "Pup Parent")
    await auth.sign_out(visitor)

    identity = await auth.sign_in(visitor, "pup@example.com", "password123")

    assert identity.name == "Pup Parent"
    assert visitor.data[USER_KEY]["name"] == "Pup Parent"

@pytest.mark.asyncio
async def test_sign_in_with_name_updates_profile(auth, visitor):
    await auth.sign_up(visitor, "pup@example.com", "password123", "Pup Parent")
    await auth.sign_out(visitor)

    await auth.sign_in(visitor, "pup@example.com", "password123", "Rex's Dad")
    await auth.sign_out(visitor)
    identity = await auth.sign_in(visitor, "pup@example.com", "password123")

    assert identity.name == "Rex's Dad"

@pytest.mark.asyncio
async def test_same_email_same_id(auth, visitor):
    first = await auth.sign_up(visitor, "Walker@Example.com", "password123")
    await auth.sign_out(visitor)
    second = await auth.sign_in(visitor, "walker@example.com", "anything")
    assert first.id == second.id

@pytest.mark.asyncio
async def test_sign_out_clears_and_is_idempotent(auth, visitor):
    await auth.sign_in(visitor, "a@example.com", "secret")
    await auth.sign_out(visitor)
    await auth.sign_out(visitor)
    assert visitor.user is None
    assert USER_KEY not in visitor.data
    assert await auth.restore(visitor) is None

@pytest.mark.asyncio
async def test_tampered_identity_is_dropped(auth):
    visitor = VisitorSession({USER_KEY: {"id": "only-an-id"}})
    assert await auth.restore(visitor) is None
    assert USER_KEY not in visitor.data

@pytest.mark.asyncio
async def test_two_visitors_do_not_share_identity(auth):
    alice, bob = VisitorSession({}), VisitorSession({})
    await auth.sign_up(alice, "alice@example.com", "password123", "Alice")

    assert await auth.restore(bob) is None
    assert bob.user is None
    assert alice.user.name == "Alice"

@pytest.mark.asyncio
@pytest.mark.parametrize("email, password", [
    ("not-an-email", "password123"),
    ("a@example.com", "123"),
    ("", "password123"),
])
async def test_sign_up_rejects_bad_credentials(auth, visitor, email, password):
    with pytest.raises(AuthError):
        await auth.sign_up(visitor, email, password)
    assert visitor.user is None
    assert visitor.data == {}

@pytest.mark.asyncio
async def test_sign_in_requires_password(auth, visitor):
    with pytest.raises(AuthError):
        await auth.sign_in(visitor, "a@example.com", "")
