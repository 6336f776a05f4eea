# backend/tonypoem/api/routers/pages.py
"""
Public pages.

Endpoints:
    GET  /             - Home (static content)
    GET  /about        - Mission, impact counters, leadership carousel
    GET  /blog         - Blog listing (q, topic, year, page)
    GET  /blog/{id}    - Blog post with related posts
    GET  /programs     - Program listing (page, view)
    GET  /contact      - Contact form
    POST /contact      - Store a contact message
    GET  /donation     - Donation form
    POST /donation     - Store a donation record with optional receipt image
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError

from tonypoem.api.forms import UploadRejected, read_uploads, submission_key, text_fields
from tonypoem.core.content.counter import ImpactCounterAnimator
from tonypoem.core.content.errors import BusyError, FetchError, NotFoundError, WriteError
from tonypoem.core.content.list_view import ALL, Failed, ListViewController
from tonypoem.core.content.records import Collection, ContentRecord
from tonypoem.core.content.repository import RecordQuery
from tonypoem.dependencies import Services, get_services
from tonypoem.models import ContactForm, DonationForm, validation_messages
from tonypoem.site_content import (
    ABOUT_PROGRAMS,
    HOME_BLOGS,
    HOME_PROJECTS,
    HOME_TESTIMONIALS,
    IMPACT_STATS,
    MISSION,
    PARTNERS,
    VISION,
)
from tonypoem.templating import pagination, render

router = APIRouter(tags=["Pages"])

logger = logging.getLogger("tonypoem.pages")

NOTICES = {
    "not-found": "Blog post not found. Please check the URL.",
}


def carousel_index(requested: Optional[int], count: int) -> int:
    """Wrap a carousel position into [0, count)."""
    if count <= 0 or requested is None:
        return 0
    return requested % count


# =========================================================================
# STATIC PAGES
# =========================================================================


@router.get("/", name="home")
async def home(request: Request):
    return render(request, "home.html", {
        "projects": HOME_PROJECTS,
        "testimonials": HOME_TESTIMONIALS,
        "blogs": HOME_BLOGS,
        "impact_stats": IMPACT_STATS,
        "partners": PARTNERS,
    })


@router.get("/about", name="about")
async def about(
    request: Request,
    leader: Optional[int] = None,
    services: Services = Depends(get_services),
):
    leadership: List[ContentRecord] = []
    error = None
    try:
        leadership = await services.repository.list_all(Collection.LEADERSHIP)
    except FetchError as e:
        logger.error(f"Error fetching leadership data: {e}")
        error = e.user_message

    index = carousel_index(leader, len(leadership))
    count = len(leadership)
    return render(request, "about.html", {
        "mission": MISSION,
        "vision": VISION,
        "programs": ABOUT_PROGRAMS,
        "impact": ImpactCounterAnimator().snapshot(),
        "leadership": leadership,
        "leader": leadership[index] if leadership else None,
        "leader_index": index,
        "previous_leader": (index - 1 + count) % count if count else 0,
        "next_leader": (index + 1) % count if count else 0,
        "error": error,
    })


# =========================================================================
# BLOG
# =========================================================================


@router.get("/blog", name="blog")
async def blog(
    request: Request,
    q: str = "",
    topic: str = ALL,
    year: str = ALL,
    page: int = 1,
    notice: Optional[str] = None,
    services: Services = Depends(get_services),
):
    view = ListViewController(
        lambda: services.repository.list_all(Collection.BLOGS),
        page_size=services.settings.blog_page_size,
    )
    try:
        state = await view.load()
        view.set_topic(topic)
        view.set_year(year)
        view.set_search(q)
        view.go_to_page(page)
    finally:
        view.close()

    return render(request, "blog.html", {
        "view": view,
        "error": state.message if isinstance(state, Failed) else None,
        "notice": NOTICES.get(notice or ""),
        "pagination": pagination(view, "/blog", q=q, topic=view.selected_topic, year=view.selected_year),
    })


@router.get("/blog/{post_id}", name="blog_detail")
async def blog_detail(
    request: Request,
    post_id: str,
    services: Services = Depends(get_services),
):
    repository = services.repository
    try:
        post = await repository.get(Collection.BLOGS, post_id)
    except NotFoundError:
        logger.info(f"Blog post {post_id} not found; redirecting to listing")
        return RedirectResponse("/blog?notice=not-found", status_code=303)
    except FetchError as e:
        logger.error(f"Error fetching post {post_id}: {e}")
        return render(request, "blog_detail.html", {"post": None, "related": [], "error": e.user_message})

    related: List[ContentRecord] = []
    if post.topic and services.settings.related_posts_limit:
        try:
            related = await repository.list_filtered(
                Collection.BLOGS,
                RecordQuery(
                    field="topic",
                    equals=post.topic,
                    exclude_id=post.id,
                    limit=services.settings.related_posts_limit,
                    order_by="date",
                ),
            )
        except FetchError as e:
            logger.warning(f"Related posts unavailable for {post_id}: {e}")

    return render(request, "blog_detail.html", {"post": post, "related": related, "error": None})


# =========================================================================
# PROGRAMS
# =========================================================================


@router.get("/programs", name="programs")
async def programs(
    request: Request,
    page: int = 1,
    view: str = "grid",
    services: Services = Depends(get_services),
):
    layout = view if view in ("grid", "list") else "grid"
    listing = ListViewController(
        lambda: services.repository.list_all(Collection.PROGRAMS),
        page_size=services.settings.program_page_size,
    )
    try:
        state = await listing.load()
        listing.go_to_page(page)
    finally:
        listing.close()

    return render(request, "programs.html", {
        "view": listing,
        "layout": layout,
        "error": state.message if isinstance(state, Failed) else None,
        "pagination": pagination(listing, "/programs", view=layout if layout != "grid" else None),
    })


# =========================================================================
# CONTACT & DONATION
# =========================================================================


@router.get("/contact", name="contact")
async def contact_form(request: Request):
    return render(request, "contact.html", {"values": {}, "errors": [], "submitted": False})


@router.post("/contact")
async def contact_submit(request: Request, services: Services = Depends(get_services)):
    values = text_fields(await request.form())
    try:
        form = ContactForm(**values)
    except ValidationError as e:
        return render(request, "contact.html", {
            "values": values, "errors": validation_messages(e), "submitted": False,
        }, status_code=422)

    fields = form.to_fields()
    try:
        async with services.busy.hold(submission_key(Collection.CONTACTS, fields)):
            fields["submittedAt"] = datetime.now(timezone.utc).isoformat()
            await services.repository.create(Collection.CONTACTS, fields)
    except (WriteError, BusyError) as e:
        status_code = 409 if isinstance(e, BusyError) else 503
        message = e.user_message if isinstance(e, BusyError) else "Failed to send your message. Please try again."
        return render(request, "contact.html", {
            "values": values, "errors": [message], "submitted": False,
        }, status_code=status_code)

    return render(request, "contact.html", {"values": {}, "errors": [], "submitted": True})


@router.get("/donation", name="donation")
async def donation_form(request: Request):
    return render(request, "donation.html", {"values": {}, "errors": [], "submitted": False})


@router.post("/donation")
async def donation_submit(request: Request, services: Services = Depends(get_services)):
    submitted = await request.form()
    values = text_fields(submitted)
    try:
        form = DonationForm(**values)
        uploads = await read_uploads(submitted, "image", services.settings)
    except ValidationError as e:
        return render(request, "donation.html", {
            "values": values, "errors": validation_messages(e), "submitted": False,
        }, status_code=422)
    except UploadRejected as e:
        return render(request, "donation.html", {
            "values": values, "errors": [str(e)], "submitted": False,
        }, status_code=422)

    fields = form.to_fields()
    try:
        async with services.busy.hold(submission_key(Collection.DONATIONS, fields)):
            await services.repository.create_with_media(
                Collection.DONATIONS, fields, uploads[:1], path_prefix="donations",
            )
    except (WriteError, BusyError) as e:
        status_code = 409 if isinstance(e, BusyError) else 503
        message = e.user_message if isinstance(e, BusyError) else "Failed to save donation data. Please try again."
        return render(request, "donation.html", {
            "values": values, "errors": [message], "submitted": False,
        }, status_code=status_code)

    return render(request, "donation.html", {"values": {}, "errors": [], "submitted": True})
