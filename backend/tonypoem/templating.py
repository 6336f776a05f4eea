"""
Jinja2 template environment and page helpers.

Templates live in tonypoem/templates. The environment carries the site-wide
globals (navigation, site name, footer links) so routes only pass
page-specific context.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from fastapi import Request
from fastapi.templating import Jinja2Templates
from jinja2 import Environment, FileSystemLoader, select_autoescape

from tonypoem.config import settings
from tonypoem.core.content.list_view import ALL, ListViewController
from tonypoem.site_content import FACEBOOK_URL, NAV_ITEMS, WHATSAPP_URL

TEMPLATES_DIR = Path(__file__).parent / "templates"
STATIC_DIR = Path(__file__).parent / "static"

ADMIN_NAV_ITEMS = [
    {"label": "Manage Content", "path": "/manageContent"},
    {"label": "Add Post", "path": "/addPost"},
    {"label": "Add Program", "path": "/addProgram"},
    {"label": "Add Leader", "path": "/addLeaders"},
    {"label": "Add Testimonial", "path": "/addTestimonial"},
]

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
)
_env.globals.update(
    site_name=settings.site_name,
    nav_items=NAV_ITEMS,
    admin_nav_items=ADMIN_NAV_ITEMS,
    facebook_url=FACEBOOK_URL,
    whatsapp_url=WHATSAPP_URL,
    current_year=datetime.now().year,
)

templates = Jinja2Templates(env=_env)


def render(request: Request, name: str, context: Optional[Dict[str, Any]] = None, status_code: int = 200):
    """Render `name` with the request's path available for nav highlighting."""
    page_context = {"current_path": request.url.path}
    page_context.update(context or {})
    return templates.TemplateResponse(request, name, page_context, status_code=status_code)


# Facet params whose "All" value is the default and is left out of URLs
FACET_PARAMS = ("topic", "year")


def query_url(path: str, **params: Any) -> str:
    """`path` with the non-default query params appended."""
    cleaned = {
        key: value
        for key, value in params.items()
        if value not in (None, "")
        and not (key in FACET_PARAMS and value == ALL)
        and not (key.endswith("page") and value == 1)
    }
    return f"{path}?{urlencode(cleaned)}" if cleaned else path


def pagination(listing: ListViewController, path: str, page_param: str = "page", **params: Any) -> Dict[str, Any]:
    """Template context for a listing's pagination controls."""
    pages: List[Dict[str, Any]] = [
        {
            "number": number,
            "url": query_url(path, **{**params, page_param: number}),
            "current": number == listing.current_page,
        }
        for number in range(1, listing.total_pages + 1)
    ]
    return {
        "visible": listing.show_pagination,
        "current": listing.current_page,
        "total": listing.total_pages,
        "has_previous": listing.has_previous,
        "has_next": listing.has_next,
        "previous_url": query_url(path, **{**params, page_param: listing.current_page - 1}) if listing.has_previous else None,
        "next_url": query_url(path, **{**params, page_param: listing.current_page + 1}) if listing.has_next else None,
        "pages": pages,
    }
