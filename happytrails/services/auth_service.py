import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, MutableMapping, Optional

from happytrails.core.errors import AuthError, StoreError
from happytrails.core.logger import logger
from happytrails.models.db_models import Identity
from happytrails.models.forms import parse_credentials
from happytrails.services.db_service import SupabaseService
from happytrails.services.local_storage import LocalStorage, PROFILES_KEY

# Keys inside the signed session cookie
USER_KEY = "happytrails.user"
SESSION_KEY = "happytrails.session"

LOCAL_ID_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_DNS, "happytrails.local")


class VisitorSession:
    """
    One visitor's auth state for the current request.

    `data` is the visitor's signed cookie session; it is what survives a reload.
    `user` and `client` are resolved from it by `AuthProvider.restore` and only
    live for the request.
    """

    def __init__(self, data: Optional[MutableMapping[str, Any]] = None):
        self.data = data if data is not None else {}
        self.user: Optional[Identity] = None
        self.client: Any = None

    def clear(self) -> None:
        self.data.pop(USER_KEY, None)
        self.data.pop(SESSION_KEY, None)
        self.user = None
        self.client = None


class AuthProvider(ABC):
    """
    Signs visitors in and out. Holds no per-visitor state itself: everything
    is read from and written to the `VisitorSession` passed in.
    """

    @abstractmethod
    async def restore(self, visitor: VisitorSession) -> Optional[Identity]:
        ...

    @abstractmethod
    async def sign_in(self, visitor: VisitorSession, email: str, password: str,
                      name: Optional[str] = None) -> Identity:
        ...

    @abstractmethod
    async def sign_up(self, visitor: VisitorSession, email: str, password: str,
                      name: Optional[str] = None) -> Identity:
        ...

    @abstractmethod
    async def sign_out(self, visitor: VisitorSession) -> None:
        ...


class LocalAuthProvider(AuthProvider):
    """Fabricates identities locally; profiles are kept in the local storage file."""

    def __init__(self, storage: LocalStorage):
        self.storage = storage

    @staticmethod
    def identity_id(email: str) -> str:
        # Same email, same id: bookings made before a sign-out stay attached
        return str(uuid.uuid5(LOCAL_ID_NAMESPACE, email.strip().lower()))

    def _profiles(self) -> Dict[str, Dict[str, str]]:
        profiles = self.storage.get_item(PROFILES_KEY) or {}
        if not isinstance(profiles, dict):
            raise StoreError("Stored profiles are corrupt.")
        return profiles

    def _save_profile(self, identity: Identity) -> None:
        profiles = self._profiles()
        profiles[identity.id] = identity.model_dump()
        self.storage.set_item(PROFILES_KEY, profiles)

    async def restore(self, visitor: VisitorSession) -> Optional[Identity]:
        raw = visitor.data.get(USER_KEY)
        if raw:
            try:
                visitor.user = Identity.model_validate(raw)
            except ValueError:
                logger.warning("⚠️ Dropping unreadable identity from session cookie")
                visitor.clear()
        return visitor.user

    def _activate(self, visitor: VisitorSession, identity: Identity) -> Identity:
        visitor.data[USER_KEY] = identity.model_dump()
        visitor.user = identity
        return identity

    async def sign_in(self, visitor: VisitorSession, email: str, password: str,
                      name: Optional[str] = None) -> Identity:
        creds = parse_credentials(email, password)
        email = str(creds.email)
        user_id = self.identity_id(email)
        name = (name or "").strip()

        try:
            known = self._profiles().get(user_id)
            if name or not known:
                identity = Identity(id=user_id, name=name or email, email=email)
                self._save_profile(identity)
            else:
                identity = Identity.model_validate(known)
        except StoreError as e:
            raise AuthError("Could not load your profile.") from e

        self._activate(visitor, identity)
        logger.info(f"✅ Signed in (local): {identity.email}")
        return identity

    async def sign_up(self, visitor: VisitorSession, email: str, password: str,
                      name: Optional[str] = None) -> Identity:
        creds = parse_credentials(email, password, name, signup=True)
        email = str(creds.email)
        identity = Identity(id=self.identity_id(email), name=creds.name or email, email=email)
        try:
            self._save_profile(identity)
        except StoreError as e:
            raise AuthError("Could not save your profile.") from e

        self._activate(visitor, identity)
        logger.info(f"🆕 Signed up (local): {identity.email}")
        return identity

    async def sign_out(self, visitor: VisitorSession) -> None:
        visitor.clear()
        logger.info("👋 Signed out (local)")


def identity_from_user(user: Any) -> Identity:
    """Maps a Supabase auth user onto our Identity."""
    metadata = getattr(user, "user_metadata", None) or {}
    email = user.email or ""
    return Identity(id=str(user.id), name=metadata.get("name") or email, email=email)


class SupabaseAuthProvider(AuthProvider):
    """
    Delegates authentication to Supabase Auth and mirrors users into `profiles`.
    The visitor's access/refresh tokens ride in the session cookie; each request
    gets a client signed in with them.
    """

    def __init__(self, db: SupabaseService):
        self.db = db

    async def _client(self):
        try:
            return await self.db.create_client()
        except StoreError as e:
            raise AuthError("The sign-in service is unavailable.") from e

    @staticmethod
    def _remember(visitor: VisitorSession, session: Any) -> None:
        visitor.data[SESSION_KEY] = {
            "access_token": session.access_token,
            "refresh_token": session.refresh_token,
        }

    async def restore(self, visitor: VisitorSession) -> Optional[Identity]:
        marker = visitor.data.get(SESSION_KEY)
        if not marker:
            return None

        try:
            client = await self.db.create_client()
            response = await client.auth.set_session(marker["access_token"], marker["refresh_token"])
        except Exception as e:
            logger.warning(f"⚠️ Stored Supabase session rejected: {e}")
            visitor.clear()
            return None

        if response is None or response.user is None:
            visitor.clear()
            return None

        if response.session is not None:
            # Tokens may have been refreshed
            self._remember(visitor, response.session)
        visitor.user = identity_from_user(response.user)
        visitor.client = client
        return visitor.user

    async def sign_in(self, visitor: VisitorSession, email: str, password: str,
                      name: Optional[str] = None) -> Identity:
        creds = parse_credentials(email, password)
        client = await self._client()
        try:
            response = await client.auth.sign_in_with_password({
                "email": str(creds.email),
                "password": creds.password,
            })
        except Exception as e:
            logger.info(f"🚫 Sign-in rejected for {creds.email}: {e}")
            raise AuthError(str(e) or "Auth error") from e

        if response.user is None or response.session is None:
            raise AuthError("Invalid login credentials")

        self._remember(visitor, response.session)
        visitor.user = identity_from_user(response.user)
        visitor.client = client
        logger.info(f"✅ Signed in: {visitor.user.email}")
        return visitor.user

    async def sign_up(self, visitor: VisitorSession, email: str, password: str,
                      name: Optional[str] = None) -> Identity:
        creds = parse_credentials(email, password, name, signup=True)
        client = await self._client()
        try:
            response = await client.auth.sign_up({
                "email": str(creds.email),
                "password": creds.password,
                "options": {"data": {"name": creds.name}},
            })
        except Exception as e:
            logger.info(f"🚫 Sign-up rejected for {creds.email}: {e}")
            raise AuthError(str(e) or "Auth error") from e

        if response.user is None:
            raise AuthError("Sign-up failed.")

        identity = identity_from_user(response.user)

        # Second, separate write; a failure leaves the auth user without a profile row
        try:
            await client.table("profiles").upsert({
                "id": identity.id,
                "email": identity.email,
                "name": creds.name,
            }).execute()
        except Exception as e:
            logger.warning(f"⚠️ Profile row not written for {identity.id}: {e}")

        if response.session is not None:
            self._remember(visitor, response.session)
            visitor.user = identity
            visitor.client = client
            logger.info(f"🆕 Signed up and signed in: {identity.email}")
        else:
            logger.info(f"🆕 Signed up {identity.email}, waiting for email confirmation")
        return identity

    async def sign_out(self, visitor: VisitorSession) -> None:
        if visitor.client is not None:
            try:
                await visitor.client.auth.sign_out()
            except Exception as e:
                logger.warning(f"⚠️ Supabase sign-out failed, clearing session anyway: {e}")
        visitor.clear()
        logger.info("👋 Signed out")
