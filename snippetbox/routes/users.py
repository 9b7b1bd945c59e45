"""
Snippetbox: Signup, Login and Logout
====================================

What:  Account creation and the Anonymous ⇄ Authenticated transitions.
How:   Login and logout both rotate the session token before changing the
       stored user id, so a token captured before the change is useless
       afterwards.

Routes:
    GET/POST /user/signup   duplicate email → field error, 422
    GET/POST /user/login    bad credentials → non-field error, 422;
                            success → remembered path (once) or /snippet/create
    POST     /user/logout   requires a login; 303 to /
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from snippetbox.context import AUTH_USER_KEY, FLASH_KEY, REDIRECT_AFTER_LOGIN_KEY, RequestContext
from snippetbox.dependencies import Application, get_application, get_context, require_authentication
from snippetbox.exceptions import DuplicateEmailError, InvalidCredentialsError
from snippetbox.schemas.forms import UserLoginForm, UserSignupForm, decode_post_form
from snippetbox.templating import render
from snippetbox.validator import EMAIL_RX, matches, max_bytes, min_chars, not_blank

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["Users"])

DEFAULT_LOGIN_REDIRECT = "/snippet/create"


# ── Signup ────────────────────────────────────────────────────────────────

@router.get("/signup")
async def user_signup(
    request: Request,
    application: Application = Depends(get_application),
    context: RequestContext = Depends(get_context),
):
    return render(request, application, context, 200, "signup.html", form=UserSignupForm())


@router.post("/signup")
async def user_signup_post(
    request: Request,
    application: Application = Depends(get_application),
    context: RequestContext = Depends(get_context),
):
    form = await decode_post_form(request, UserSignupForm)

    form.check_field(not_blank(form.name), "name", "This field cannot be blank")
    form.check_field(not_blank(form.email), "email", "This field cannot be blank")
    form.check_field(matches(form.email, EMAIL_RX), "email", "This field must be a valid email address")
    form.check_field(not_blank(form.password), "password", "This field cannot be blank")
    form.check_field(min_chars(form.password, 8), "password", "This field must be at least 8 characters long")
    form.check_field(
        max_bytes(form.password, 72), "password", "This field cannot be more than 72 bytes long"
    )

    if not form.valid():
        return render(request, application, context, 422, "signup.html", form=form)

    try:
        await application.users.insert(form.name, form.email, form.password)
    except DuplicateEmailError:
        form.add_field_error("email", "Email address is already in use")
        return render(request, application, context, 422, "signup.html", form=form)

    context.session.put(FLASH_KEY, "Your signup was successful. Please log in.")
    return RedirectResponse("/user/login", status_code=303)


# ── Login / Logout ────────────────────────────────────────────────────────

@router.get("/login")
async def user_login(
    request: Request,
    application: Application = Depends(get_application),
    context: RequestContext = Depends(get_context),
):
    return render(request, application, context, 200, "login.html", form=UserLoginForm())


@router.post("/login")
async def user_login_post(
    request: Request,
    application: Application = Depends(get_application),
    context: RequestContext = Depends(get_context),
):
    form = await decode_post_form(request, UserLoginForm)

    form.check_field(not_blank(form.email), "email", "This field cannot be blank")
    form.check_field(matches(form.email, EMAIL_RX), "email", "This field must be a valid email address")
    form.check_field(not_blank(form.password), "password", "This field cannot be blank")

    if not form.valid():
        return render(request, application, context, 422, "login.html", form=form)

    try:
        user_id = await application.users.authenticate(form.email, form.password)
    except InvalidCredentialsError:
        form.add_non_field_error("Email or password is incorrect")
        return render(request, application, context, 422, "login.html", form=form)

    context.session.renew_token()
    context.session.put(AUTH_USER_KEY, user_id)
    logger.info("User %d logged in", user_id)

    path = context.session.pop_string(REDIRECT_AFTER_LOGIN_KEY)
    return RedirectResponse(path or DEFAULT_LOGIN_REDIRECT, status_code=303)


@router.post("/logout")
async def user_logout_post(
    context: RequestContext = Depends(require_authentication),
):
    context.session.renew_token()
    context.session.remove(AUTH_USER_KEY)
    context.session.put(FLASH_KEY, "You've been logged out successfully!")
    logger.info("User %s logged out", context.user_id)
    return RedirectResponse("/", status_code=303)
