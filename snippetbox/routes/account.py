"""
Snippetbox: Account Routes
==========================

GET      /account/view             profile of the logged-in user
GET/POST /account/password/update  change password; rotates the session token

Both require a login.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from snippetbox.context import FLASH_KEY, RequestContext
from snippetbox.dependencies import Application, get_application, require_authentication
from snippetbox.exceptions import InvalidCredentialsError, NotFoundError
from snippetbox.schemas.forms import AccountPasswordUpdateForm, decode_post_form
from snippetbox.templating import render
from snippetbox.validator import max_bytes, min_chars, not_blank

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/account", tags=["Account"])


@router.get("/view")
async def account_view(
    request: Request,
    application: Application = Depends(get_application),
    context: RequestContext = Depends(require_authentication),
):
    try:
        user = await application.users.get(context.user_id)
    except NotFoundError:
        return RedirectResponse("/user/login", status_code=303)
    return render(request, application, context, 200, "account.html", user=user)


@router.get("/password/update")
async def account_password_update(
    request: Request,
    application: Application = Depends(get_application),
    context: RequestContext = Depends(require_authentication),
):
    form = AccountPasswordUpdateForm()
    return render(request, application, context, 200, "password.html", form=form)


@router.post("/password/update")
async def account_password_update_post(
    request: Request,
    application: Application = Depends(get_application),
    context: RequestContext = Depends(require_authentication),
):
    form = await decode_post_form(request, AccountPasswordUpdateForm)

    form.check_field(not_blank(form.current_password), "current_password", "This field cannot be blank")
    form.check_field(not_blank(form.new_password), "new_password", "This field cannot be blank")
    form.check_field(
        min_chars(form.new_password, 8), "new_password", "This field must be at least 8 characters long"
    )
    form.check_field(
        max_bytes(form.new_password, 72), "new_password", "This field cannot be more than 72 bytes long"
    )
    form.check_field(
        not_blank(form.new_password_confirmation), "new_password_confirmation", "This field cannot be blank"
    )
    form.check_field(
        form.new_password == form.new_password_confirmation,
        "new_password_confirmation",
        "Passwords do not match",
    )

    if not form.valid():
        return render(request, application, context, 422, "password.html", form=form)

    try:
        await application.users.password_update(
            context.user_id, form.current_password, form.new_password
        )
    except InvalidCredentialsError:
        form.add_field_error("current_password", "Current password is incorrect")
        return render(request, application, context, 422, "password.html", form=form)

    context.session.renew_token()
    context.session.put(FLASH_KEY, "Your password has been updated!")
    logger.info("User %d changed password", context.user_id)
    return RedirectResponse("/account/view", status_code=303)
