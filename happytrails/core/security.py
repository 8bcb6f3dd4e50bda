from fastapi import Depends, HTTPException, Request

from happytrails.core.errors import LoginRequired
from happytrails.models.db_models import Identity
from happytrails.services.auth_service import AuthProvider, VisitorSession
from happytrails.services.booking_service import BookingStore


def get_auth(request: Request) -> AuthProvider:
    """
    The identity context installed at startup.
    Using it in an app that never installed one is a wiring bug, not a visitor error.
    """
    auth = getattr(request.app.state, "auth", None)
    if auth is None:
        raise RuntimeError("get_auth used outside an app with an AuthProvider installed")
    return auth

async def get_visitor(request: Request, auth: AuthProvider = Depends(get_auth)) -> VisitorSession:
    """
    The calling visitor, resolved from their signed session cookie.
    Restored once per request and kept on `request.state` for page rendering.
    """
    visitor = getattr(request.state, "visitor", None)
    if visitor is None:
        visitor = VisitorSession(request.session)
        await auth.restore(visitor)
        request.state.visitor = visitor
    return visitor

def get_bookings(request: Request, visitor: VisitorSession = Depends(get_visitor)) -> BookingStore:
    store = getattr(request.app.state, "bookings", None)
    if store is None:
        raise RuntimeError("get_bookings used outside an app with a BookingStore installed")
    # Remote stores must query with the visitor's own token
    return store.scoped(visitor.client)

async def require_user(visitor: VisitorSession = Depends(get_visitor)) -> Identity:
    """Page guard: no active identity means a redirect to /login, nothing else."""
    if visitor.user is None:
        raise LoginRequired()
    return visitor.user

async def require_api_user(visitor: VisitorSession = Depends(get_visitor)) -> Identity:
    if visitor.user is None:
        raise HTTPException(status_code=401, detail="Not signed in")
    return visitor.user
