"""
TIL Backend — Website Routes
============================

What:  Server-rendered HTML pages (Jinja2) for browsing and editing acronyms,
       plus the login, register and Google OAuth pages.
How:   Every handler receives a WebContext (visitor + session). Pages that
       change data require a logged-in visitor and a matching CSRF token;
       anonymous visitors are redirected to /login.
Who:   Browsers.

Create/Edit Flow:
    form(short, long, categories[], csrf_token)
        │
        ├─ not logged in ───────────▶ 303 /login
        ├─ csrf mismatch ───────────▶ 403
        └─ save acronym ─▶ tag_reconciler.reconcile(categories) ─▶ 303 /acronyms/{id}
"""

import logging
from pathlib import Path
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from tilapp.database import get_db_session
from tilapp.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from tilapp.repositories import AcronymRepository, CategoryRepository, UserRepository
from tilapp.routes.deps import WebContext, get_web_context, redirect_to, redirect_to_login
from tilapp.services.auth_service import (
    REAUTHORIZE,
    auth_service,
    log_in_session,
    log_out_session,
    new_oauth_state,
    pop_oauth_state,
)
from tilapp.services.oauth_service import GoogleOAuthService, google_oauth_service
from tilapp.services.tag_reconciler import tag_reconciler

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

router = APIRouter(tags=["Website"], include_in_schema=False)


def get_oauth_service() -> GoogleOAuthService:
    return google_oauth_service


def _require_text(value: str, field: str) -> str:
    if not value or not value.strip():
        raise ValidationError(message=f"'{field}' must not be blank", field=field)
    return value


# ══════════════════════════════════════════════════════════════════════════
# Browsing
# ══════════════════════════════════════════════════════════════════════════

@router.get("/")
async def index(
    request: Request,
    ctx: WebContext = Depends(get_web_context),
    db: AsyncSession = Depends(get_db_session),
):
    acronyms = await AcronymRepository(db).list_all()
    return templates.TemplateResponse(
        request, "index.html", ctx.template_context(title="Home page", acronyms=acronyms)
    )


@router.get("/acronyms/create")
async def create_acronym_page(request: Request, ctx: WebContext = Depends(get_web_context)):
    if not ctx.logged_in:
        return redirect_to_login()
    return templates.TemplateResponse(
        request,
        "createAcronym.html",
        ctx.template_context(title="Create An Acronym", csrf_token=ctx.csrf_token, editing=False),
    )


@router.post("/acronyms/create")
async def create_acronym(
    short: str = Form(""),
    long: str = Form(""),
    categories: List[str] = Form(default=[]),
    csrf_token: Optional[str] = Form(None),
    ctx: WebContext = Depends(get_web_context),
    db: AsyncSession = Depends(get_db_session),
):
    if not ctx.logged_in:
        return redirect_to_login()
    ctx.verify_csrf(csrf_token)

    acronym = await AcronymRepository(db).create(
        short=_require_text(short, "short"),
        long=_require_text(long, "long"),
        user_id=ctx.user.id,
    )
    await tag_reconciler.reconcile(db, acronym, categories)
    return redirect_to(f"/acronyms/{acronym.id}")


@router.get("/acronyms/{acronym_id}")
async def acronym_page(
    acronym_id: UUID,
    request: Request,
    ctx: WebContext = Depends(get_web_context),
    db: AsyncSession = Depends(get_db_session),
):
    acronym = await AcronymRepository(db).get_or_404(acronym_id)
    owner = await UserRepository(db).get_or_404(acronym.user_id)
    categories = await CategoryRepository(db).list_for_acronym(acronym.id)
    return templates.TemplateResponse(
        request,
        "acronym.html",
        ctx.template_context(
            title=acronym.short,
            acronym=acronym,
            user=owner,
            categories=categories,
            csrf_token=ctx.csrf_token,
        ),
    )


@router.get("/acronyms/{acronym_id}/edit")
async def edit_acronym_page(
    acronym_id: UUID,
    request: Request,
    ctx: WebContext = Depends(get_web_context),
    db: AsyncSession = Depends(get_db_session),
):
    if not ctx.logged_in:
        return redirect_to_login()
    acronym = await AcronymRepository(db).get_or_404(acronym_id)
    categories = await CategoryRepository(db).list_for_acronym(acronym.id)
    return templates.TemplateResponse(
        request,
        "createAcronym.html",
        ctx.template_context(
            title="Edit Acronym",
            acronym=acronym,
            categories=categories,
            csrf_token=ctx.csrf_token,
            editing=True,
        ),
    )


@router.post("/acronyms/{acronym_id}/edit")
async def edit_acronym(
    acronym_id: UUID,
    short: str = Form(""),
    long: str = Form(""),
    categories: List[str] = Form(default=[]),
    csrf_token: Optional[str] = Form(None),
    ctx: WebContext = Depends(get_web_context),
    db: AsyncSession = Depends(get_db_session),
):
    if not ctx.logged_in:
        return redirect_to_login()
    ctx.verify_csrf(csrf_token)

    repository = AcronymRepository(db)
    acronym = await repository.get_or_404(acronym_id)
    acronym.short = _require_text(short, "short")
    acronym.long = _require_text(long, "long")
    acronym.user_id = ctx.user.id
    await repository.save(acronym)

    await tag_reconciler.reconcile(db, acronym, categories)
    return redirect_to(f"/acronyms/{acronym.id}")


@router.post("/acronyms/{acronym_id}/delete")
async def delete_acronym(
    acronym_id: UUID,
    csrf_token: Optional[str] = Form(None),
    ctx: WebContext = Depends(get_web_context),
    db: AsyncSession = Depends(get_db_session),
):
    if not ctx.logged_in:
        return redirect_to_login()
    ctx.verify_csrf(csrf_token)
    if not await AcronymRepository(db).delete(acronym_id):
        raise NotFoundError(resource="acronym", resource_id=str(acronym_id))
    return redirect_to("/")


@router.get("/users")
async def all_users(
    request: Request,
    ctx: WebContext = Depends(get_web_context),
    db: AsyncSession = Depends(get_db_session),
):
    users = await UserRepository(db).list_all()
    return templates.TemplateResponse(
        request, "allUsers.html", ctx.template_context(title="All Users", users=users)
    )


@router.get("/users/{user_id}")
async def user_page(
    user_id: UUID,
    request: Request,
    ctx: WebContext = Depends(get_web_context),
    db: AsyncSession = Depends(get_db_session),
):
    user = await UserRepository(db).get_or_404(user_id)
    acronyms = await AcronymRepository(db).list_for_user(user.id)
    return templates.TemplateResponse(
        request, "user.html", ctx.template_context(title=user.name, user=user, acronyms=acronyms)
    )


@router.get("/categories")
async def all_categories(
    request: Request,
    ctx: WebContext = Depends(get_web_context),
    db: AsyncSession = Depends(get_db_session),
):
    categories = await CategoryRepository(db).list_all()
    return templates.TemplateResponse(
        request,
        "allCategories.html",
        ctx.template_context(title="All Categories", categories=categories),
    )


@router.get("/categories/{category_id}")
async def category_page(
    category_id: UUID,
    request: Request,
    ctx: WebContext = Depends(get_web_context),
    db: AsyncSession = Depends(get_db_session),
):
    category = await CategoryRepository(db).get_or_404(category_id)
    acronyms = await AcronymRepository(db).list_for_category(category.id)
    return templates.TemplateResponse(
        request,
        "category.html",
        ctx.template_context(title=category.name, category=category, acronyms=acronyms),
    )


# ══════════════════════════════════════════════════════════════════════════
# Login, Logout, Register
# ══════════════════════════════════════════════════════════════════════════

@router.get("/login")
async def login_page(
    request: Request,
    error: Optional[str] = Query(default=None),
    ctx: WebContext = Depends(get_web_context),
    oauth: GoogleOAuthService = Depends(get_oauth_service),
):
    return templates.TemplateResponse(
        request,
        "login.html",
        ctx.template_context(
            title="Log In",
            login_error=error is not None,
            google_enabled=oauth.enabled,
        ),
    )


@router.post("/login")
async def login(
    username: str = Form(""),
    password: str = Form(""),
    ctx: WebContext = Depends(get_web_context),
    db: AsyncSession = Depends(get_db_session),
):
    result = await auth_service.authenticate_basic(db, username, password)
    if not result.ok:
        return redirect_to("/login?error=1")
    log_in_session(ctx.session, result.user)
    return redirect_to("/")


@router.post("/logout")
async def logout(ctx: WebContext = Depends(get_web_context)):
    log_out_session(ctx.session)
    return redirect_to("/")


@router.get("/register")
async def register_page(
    request: Request,
    message: Optional[str] = Query(default=None),
    ctx: WebContext = Depends(get_web_context),
):
    return templates.TemplateResponse(
        request, "register.html", ctx.template_context(title="Register", message=message)
    )


@router.post("/register")
async def register(
    name: str = Form(""),
    username: str = Form(""),
    password: str = Form(""),
    confirm_password: str = Form(""),
    ctx: WebContext = Depends(get_web_context),
    db: AsyncSession = Depends(get_db_session),
):
    if not name.strip() or not username.strip() or not password:
        return redirect_to("/register?message=Please+fill+in+every+field")
    if len(password) < 8:
        return redirect_to("/register?message=Password+must+be+at+least+8+characters")
    if password != confirm_password:
        return redirect_to("/register?message=Passwords+do+not+match")

    try:
        user = await auth_service.register(db, name=name, username=username, password=password)
    except ConflictError:
        return redirect_to("/register?message=Username+already+taken")

    log_in_session(ctx.session, user)
    return redirect_to("/")


# ══════════════════════════════════════════════════════════════════════════
# Google OAuth
# ══════════════════════════════════════════════════════════════════════════

@router.get("/login-google")
async def login_google(
    ctx: WebContext = Depends(get_web_context),
    oauth: GoogleOAuthService = Depends(get_oauth_service),
):
    if not oauth.enabled:
        logger.warning("Google login requested but no client credentials are configured")
        return redirect_to("/login?error=google")
    state = new_oauth_state(ctx.session)
    return redirect_to(oauth.authorization_url(state))


@router.get("/oauth/google")
async def google_callback(
    code: Optional[str] = Query(default=None),
    state: Optional[str] = Query(default=None),
    error: Optional[str] = Query(default=None),
    ctx: WebContext = Depends(get_web_context),
    db: AsyncSession = Depends(get_db_session),
    oauth: GoogleOAuthService = Depends(get_oauth_service),
):
    expected_state = pop_oauth_state(ctx.session)
    if error:
        logger.info("Google login cancelled: %s", error)
        return redirect_to("/login?error=google")
    if not expected_state or state != expected_state:
        raise ForbiddenError(message="Login state did not match. Please try again.")
    if not code:
        raise ValidationError(message="Missing authorization code", field="code")

    result = await auth_service.login_with_google(db, oauth, code)
    if not result.ok:
        if result.failure == REAUTHORIZE:
            return redirect_to("/login-google")
        return redirect_to("/login?error=google")

    log_in_session(ctx.session, result.user)
    return redirect_to("/")
