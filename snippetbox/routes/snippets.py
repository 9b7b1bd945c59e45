"""
Snippetbox: Snippet Routes
==========================

What:  View a single snippet and create new ones.
How:   Thin handlers: decode the form, apply the field rules, call
       SnippetService, then render or redirect. Creating requires a login.

Routes:
    GET  /snippet/view/{id}   404 for a non-numeric, non-positive, unknown or
                              expired id
    GET  /snippet/create      empty form, expiry preselected to one year
    POST /snippet/create      422 with field errors, or 303 to the new snippet
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from snippetbox.context import FLASH_KEY, RequestContext
from snippetbox.dependencies import Application, get_application, get_context, require_authentication
from snippetbox.exceptions import NotFoundError
from snippetbox.schemas.forms import SnippetCreateForm, decode_post_form
from snippetbox.templating import render
from snippetbox.validator import max_chars, not_blank, permitted_value

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/snippet", tags=["Snippets"])


@router.get("/view/{snippet_id}")
async def snippet_view(
    snippet_id: str,
    request: Request,
    application: Application = Depends(get_application),
    context: RequestContext = Depends(get_context),
):
    # Parsed by hand so a malformed id is a 404 page, not a 422 validation body
    try:
        parsed_id = int(snippet_id)
    except ValueError:
        raise NotFoundError(resource="snippet", resource_id=snippet_id)
    if parsed_id < 1:
        raise NotFoundError(resource="snippet", resource_id=snippet_id)

    snippet = await application.snippets.get(parsed_id)
    return render(request, application, context, 200, "view.html", snippet=snippet)


@router.get("/create")
async def snippet_create(
    request: Request,
    application: Application = Depends(get_application),
    context: RequestContext = Depends(require_authentication),
):
    form = SnippetCreateForm(expires=365)
    return render(request, application, context, 200, "create.html", form=form)


@router.post("/create")
async def snippet_create_post(
    request: Request,
    application: Application = Depends(get_application),
    context: RequestContext = Depends(require_authentication),
):
    form = await decode_post_form(request, SnippetCreateForm)

    form.check_field(not_blank(form.title), "title", "This field cannot be blank")
    form.check_field(
        max_chars(form.title, 100), "title", "This field cannot be more than 100 characters long"
    )
    form.check_field(not_blank(form.content), "content", "This field cannot be blank")
    form.check_field(
        permitted_value(form.expires, 1, 7, 365), "expires", "This field must equal 1, 7 or 365"
    )

    if not form.valid():
        return render(request, application, context, 422, "create.html", form=form)

    snippet_id = await application.snippets.insert(form.title, form.content, form.expires)
    logger.info("Snippet %d created by user %s", snippet_id, context.user_id)

    context.session.put(FLASH_KEY, "Snippet successfully created!")
    return RedirectResponse(f"/snippet/view/{snippet_id}", status_code=303)
