"""
Snippetbox: Template Rendering
==============================

What:  Jinja2 environment, the data every page receives, and the render helper.
How:   Templates live in snippetbox/templates. Each page extends base.html and
       fills the "title" and "main" blocks; partials/nav.html is included by
       the base. Autoescaping is on for .html files.

Common template data:
    current_year      for the footer
    flash             one-shot message popped from the session
    is_authenticated  switches the navigation links
    csrf_token        hidden field value for every form
"""

from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional

from fastapi.templating import Jinja2Templates
from starlette.requests import Request
from starlette.responses import Response

from snippetbox.context import FLASH_KEY, RequestContext

if TYPE_CHECKING:
    from snippetbox.dependencies import Application

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"


def human_date(value: Optional[datetime]) -> str:
    """'02 Jan 2024 at 15:04' in UTC; empty string for a missing time."""
    if value is None:
        return ""
    return value.strftime("%d %b %Y at %H:%M")


def create_templates() -> Jinja2Templates:
    templates = Jinja2Templates(directory=str(TEMPLATE_DIR))
    templates.env.filters["human_date"] = human_date
    return templates


def new_template_data(context: RequestContext) -> Dict[str, Any]:
    return {
        "current_year": datetime.now().year,
        "flash": context.session.pop_string(FLASH_KEY),
        "is_authenticated": context.is_authenticated,
        "csrf_token": context.csrf_token,
    }


def render(
    request: Request,
    application: "Application",
    context: RequestContext,
    status_code: int,
    page: str,
    **data: Any,
) -> Response:
    """
    Render `page` with the common data plus `data`.

    Jinja2 renders the whole template before the response object exists, so
    a template error raises here and never produces a half-written page.
    """
    template_data = new_template_data(context)
    template_data.update(data)
    return application.templates.TemplateResponse(
        request, page, template_data, status_code=status_code
    )
