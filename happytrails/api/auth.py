from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from happytrails.api.rendering import render
from happytrails.core.errors import AuthError
from happytrails.core.security import get_auth, get_visitor
from happytrails.services.auth_service import AuthProvider, VisitorSession

router = APIRouter()


@router.get("/login")
async def login_page(request: Request, visitor: VisitorSession = Depends(get_visitor)):
    if visitor.user is not None:
        return RedirectResponse("/profile", status_code=303)
    return render(request, "login.html", mode="signin", email="", name="", error=None)

@router.post("/login")
async def login_submit(
    request: Request,
    auth: AuthProvider = Depends(get_auth),
    visitor: VisitorSession = Depends(get_visitor),
):
    form = await request.form()
    mode = form.get("mode", "signin")
    email = (form.get("email") or "").strip()
    name = (form.get("name") or "").strip()
    password = form.get("password") or ""

    try:
        if mode == "signup":
            await auth.sign_up(visitor, email, password, name or None)
        else:
            await auth.sign_in(visitor, email, password, name or None)
    except AuthError as e:
        return render(
            request,
            "login.html",
            status_code=401,
            mode="signup" if mode == "signup" else "signin",
            email=email,
            name=name,
            error=e.message,
        )

    return RedirectResponse("/profile", status_code=303)

@router.post("/logout")
async def logout(
    auth: AuthProvider = Depends(get_auth),
    visitor: VisitorSession = Depends(get_visitor),
):
    await auth.sign_out(visitor)
    return RedirectResponse("/", status_code=303)
