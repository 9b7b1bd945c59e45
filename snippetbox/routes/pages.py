"""
Snippetbox: Home and About Pages
================================

GET /       the ten most recent unexpired snippets
GET /about  static about page
"""

from fastapi import APIRouter, Depends, Request

from snippetbox.context import RequestContext
from snippetbox.dependencies import Application, get_application, get_context
from snippetbox.templating import render

router = APIRouter(tags=["Pages"])


@router.get("/")
async def home(
    request: Request,
    application: Application = Depends(get_application),
    context: RequestContext = Depends(get_context),
):
    snippets = await application.snippets.latest()
    return render(request, application, context, 200, "home.html", snippets=snippets)


@router.get("/about")
async def about(
    request: Request,
    application: Application = Depends(get_application),
    context: RequestContext = Depends(get_context),
):
    return render(request, application, context, 200, "about.html")
