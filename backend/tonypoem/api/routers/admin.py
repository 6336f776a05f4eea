# backend/tonypoem/api/routers/admin.py
"""
Admin pages.

Every route except the login page sits behind `require_admin`, which
redirects to /adminlogin when there is no session.

Endpoints:
    GET  /adminlogin                               - Login form
    POST /adminlogin                               - Sign in, set session cookie
    POST /logout                                   - Sign out, clear session cookie
    GET  /manageContent                            - Dashboard of every collection
    POST /manageContent/{collection}/{id}/delete   - Delete a record and its images
    GET  /addPost         POST /addPost            - Create blog post
    GET  /addProgram      POST /addProgram         - Create program (multiple images)
    GET  /addLeaders      POST /addLeaders         - Create leadership profile
    GET  /addTestimonial  POST /addTestimonial     - Create testimonial
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Type

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse, Response
from pydantic import ValidationError

from tonypoem.api.forms import UploadRejected, delete_key, read_uploads, submission_key, text_fields
from tonypoem.core.auth.session_context import AdminSession, SessionContext
from tonypoem.core.content.errors import AuthError, BusyError, FetchError, NotFoundError, WriteError
from tonypoem.core.content.list_view import Failed, ListViewController
from tonypoem.core.content.records import Collection
from tonypoem.dependencies import Services, get_services, get_session_context, require_admin
from tonypoem.models import (
    LeaderForm,
    LoginForm,
    PostForm,
    ProgramForm,
    TestimonialForm,
    _FormModel,
    validation_messages,
)
from tonypoem.templating import pagination, query_url, render

router = APIRouter(tags=["Admin"])

logger = logging.getLogger("tonypoem.admin")

# Dashboard sections, in display order
MANAGED_COLLECTIONS = [
    Collection.BLOGS,
    Collection.LEADERSHIP,
    Collection.TESTIMONIALS,
    Collection.PROGRAMS,
    Collection.DONATIONS,
    Collection.CONTACTS,
]

DELETE_NOTICES = {
    "deleted": "Item deleted.",
    "missing": "That item was already deleted.",
}


def _safe_next(next_path: Optional[str]) -> str:
    if next_path and next_path.startswith("/") and not next_path.startswith("//"):
        return next_path
    return "/manageContent"


def _cookie_writer(response: Response, services: Services):
    """
    Session listener that mirrors session changes into the response cookie.

    The immediate call made by subscribe() only records the starting state.
    """
    config = services.settings
    started = []

    def write(session: Optional[AdminSession]) -> None:
        if not started:
            started.append(session)
            return
        if session is None:
            response.delete_cookie(config.session_cookie_name)
        else:
            response.set_cookie(
                config.session_cookie_name,
                session.token,
                max_age=config.session_expire_minutes * 60,
                httponly=True,
                secure=config.session_cookie_secure,
                samesite="lax",
            )

    return write


# =========================================================================
# LOGIN / LOGOUT
# =========================================================================


@router.get("/adminlogin", name="admin_login")
async def login_form(
    request: Request,
    next: Optional[str] = None,
    context: SessionContext = Depends(get_session_context),
):
    if context.is_authenticated:
        return RedirectResponse(_safe_next(next), status_code=303)
    return render(request, "admin/login.html", {"values": {}, "error": None, "next": next or ""})


@router.post("/adminlogin")
async def login_submit(
    request: Request,
    services: Services = Depends(get_services),
    context: SessionContext = Depends(get_session_context),
):
    values = text_fields(await request.form())
    next_path = values.pop("next", "")
    try:
        form = LoginForm(**values)
    except ValidationError:
        return render(request, "admin/login.html", {
            "values": values, "error": "Please enter your email and password.", "next": next_path,
        }, status_code=422)

    response = RedirectResponse(_safe_next(next_path), status_code=303)
    unsubscribe = context.subscribe(_cookie_writer(response, services))
    try:
        await context.sign_in(form.email, form.password)
    except (AuthError, FetchError) as e:
        return render(request, "admin/login.html", {
            "values": {"email": form.email}, "error": e.user_message, "next": next_path,
        }, status_code=401 if isinstance(e, AuthError) else 503)
    finally:
        unsubscribe()
    return response


@router.post("/logout", name="logout")
async def logout(
    services: Services = Depends(get_services),
    context: SessionContext = Depends(get_session_context),
):
    response = RedirectResponse("/adminlogin", status_code=303)
    if not context.is_authenticated:
        response.delete_cookie(services.settings.session_cookie_name)
        return response
    unsubscribe = context.subscribe(_cookie_writer(response, services))
    try:
        context.sign_out()
    finally:
        unsubscribe()
    return response


# =========================================================================
# DASHBOARD
# =========================================================================


@dataclass
class DashboardSection:
    collection: Collection
    view: ListViewController
    page_param: str

    @property
    def error(self) -> Optional[str]:
        return self.view.state.message if isinstance(self.view.state, Failed) else None


async def _load_dashboard(services: Services, pages: Dict[str, int]) -> List[DashboardSection]:
    sections = [
        DashboardSection(
            collection=collection,
            view=ListViewController(
                (lambda c=collection: services.repository.list_all(c)),
                page_size=services.settings.admin_page_size,
            ),
            page_param=f"{collection.value}_page",
        )
        for collection in MANAGED_COLLECTIONS
    ]
    for section in sections:
        await section.view.load()
        section.view.go_to_page(pages.get(section.page_param, 1))
    return sections


def _render_dashboard(
    request: Request,
    context: SessionContext,
    sections: List[DashboardSection],
    pages: Dict[str, int],
    notice: Optional[str] = None,
    error: Optional[str] = None,
    status_code: int = 200,
):
    rendered = []
    for section in sections:
        other_pages = {k: v for k, v in pages.items() if k != section.page_param}
        rendered.append({
            "collection": section.collection,
            "view": section.view,
            "error": section.error,
            "pagination": pagination(section.view, "/manageContent", page_param=section.page_param, **other_pages),
        })
        section.view.close()
    return render(request, "admin/manage_content.html", {
        "sections": rendered,
        "session": context.session,
        "notice": notice,
        "error": error,
        "return_query": query_url("", **pages).lstrip("?") if pages else "",
    }, status_code=status_code)


def _page_params(request: Request) -> Dict[str, int]:
    pages = {}
    for collection in MANAGED_COLLECTIONS:
        key = f"{collection.value}_page"
        raw = request.query_params.get(key)
        if raw and raw.isdigit():
            pages[key] = int(raw)
    return pages


@router.get("/manageContent", name="manage_content")
async def manage_content(
    request: Request,
    notice: Optional[str] = None,
    services: Services = Depends(get_services),
    context: SessionContext = Depends(require_admin),
):
    pages = _page_params(request)
    sections = await _load_dashboard(services, pages)
    return _render_dashboard(request, context, sections, pages, notice=DELETE_NOTICES.get(notice or ""))


@router.post("/manageContent/{collection}/{record_id}/delete", name="delete_content")
async def delete_content(
    request: Request,
    collection: str,
    record_id: str,
    services: Services = Depends(get_services),
    context: SessionContext = Depends(require_admin),
):
    try:
        target = Collection(collection)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown collection: {collection}")

    pages = _page_params(request)
    sections = await _load_dashboard(services, pages)
    section = next(s for s in sections if s.collection is target)

    notice = None
    try:
        async with services.busy.hold(delete_key(target, record_id)):
            record = await services.repository.get(target, record_id)
            removed = await services.repository.remove_with_media(record)
            notice = DELETE_NOTICES["deleted" if removed else "missing"]
    except NotFoundError:
        notice = DELETE_NOTICES["missing"]
    except BusyError as e:
        return _render_dashboard(request, context, sections, pages, error=e.user_message, status_code=409)
    except (WriteError, FetchError) as e:
        logger.error(f"Delete error for {target.value}/{record_id}: {e}")
        return _render_dashboard(
            request, context, sections, pages,
            error=f"Failed to delete item: {e.user_message}", status_code=503,
        )

    section.view.discard(record_id)
    logger.info(f"{context.session.email} deleted {target.value}/{record_id}")
    return _render_dashboard(request, context, sections, pages, notice=notice)


# =========================================================================
# CONTENT FORMS
# =========================================================================


@dataclass(frozen=True)
class ContentForm:
    """How one admin form maps onto a collection."""

    template: str
    model: Type[_FormModel]
    collection: Collection
    success: str
    failure: str
    upload_field: Optional[str] = None
    path_prefix: str = ""
    image_field: str = "imageUrl"
    multiple: bool = False


POST_FORM = ContentForm(
    template="admin/add_post.html",
    model=PostForm,
    collection=Collection.BLOGS,
    success="Blog post created successfully!",
    failure="Failed to create blog post. Please try again.",
    upload_field="image",
    path_prefix="blogs",
)
PROGRAM_FORM = ContentForm(
    template="admin/add_program.html",
    model=ProgramForm,
    collection=Collection.PROGRAMS,
    success="Program created successfully!",
    failure="Failed to create program. Please try again.",
    upload_field="images",
    path_prefix="program-images",
    image_field="images",
    multiple=True,
)
LEADER_FORM = ContentForm(
    template="admin/add_leader.html",
    model=LeaderForm,
    collection=Collection.LEADERSHIP,
    success="Leadership profile saved successfully!",
    failure="Failed to save leadership data. Please try again.",
    upload_field="image",
    path_prefix="leadership",
)
TESTIMONIAL_FORM = ContentForm(
    template="admin/add_testimonial.html",
    model=TestimonialForm,
    collection=Collection.TESTIMONIALS,
    success="Testimonial saved successfully!",
    failure="Failed to save testimonial. Please try again.",
    upload_field="image",
    path_prefix="testimonials",
)


def _show_form(request: Request, spec: ContentForm, context: SessionContext):
    return render(request, spec.template, {
        "values": {}, "errors": [], "success": None, "session": context.session,
    })


async def _submit_form(request: Request, spec: ContentForm, services: Services, context: SessionContext):
    submitted = await request.form()
    values = text_fields(submitted)

    def form_page(errors: List[str], status_code: int):
        return render(request, spec.template, {
            "values": values, "errors": errors, "success": None, "session": context.session,
        }, status_code=status_code)

    try:
        form = spec.model(**values)
        uploads = await read_uploads(submitted, spec.upload_field, services.settings) if spec.upload_field else []
    except ValidationError as e:
        return form_page(validation_messages(e), 422)
    except UploadRejected as e:
        return form_page([str(e)], 422)

    if not spec.multiple:
        uploads = uploads[:1]
    fields = form.to_fields()
    try:
        async with services.busy.hold(submission_key(spec.collection, form.model_dump(mode="json"))):
            record_id = await services.repository.create_with_media(
                spec.collection,
                fields,
                uploads,
                path_prefix=spec.path_prefix,
                image_field=spec.image_field,
                multiple=spec.multiple,
            )
    except BusyError as e:
        return form_page([e.user_message], 409)
    except WriteError as e:
        logger.error(f"Error adding {spec.collection.value} document: {e}")
        return form_page([spec.failure], 503)

    logger.info(f"{context.session.email} created {spec.collection.value}/{record_id}")
    return render(request, spec.template, {
        "values": {}, "errors": [], "success": spec.success, "session": context.session,
    })


@router.get("/addPost", name="add_post")
async def add_post_form(request: Request, context: SessionContext = Depends(require_admin)):
    return _show_form(request, POST_FORM, context)


@router.post("/addPost")
async def add_post(
    request: Request,
    services: Services = Depends(get_services),
    context: SessionContext = Depends(require_admin),
):
    return await _submit_form(request, POST_FORM, services, context)


@router.get("/addProgram", name="add_program")
async def add_program_form(request: Request, context: SessionContext = Depends(require_admin)):
    return _show_form(request, PROGRAM_FORM, context)


@router.post("/addProgram")
async def add_program(
    request: Request,
    services: Services = Depends(get_services),
    context: SessionContext = Depends(require_admin),
):
    return await _submit_form(request, PROGRAM_FORM, services, context)


@router.get("/addLeaders", name="add_leaders")
async def add_leader_form(request: Request, context: SessionContext = Depends(require_admin)):
    return _show_form(request, LEADER_FORM, context)


@router.post("/addLeaders")
async def add_leader(
    request: Request,
    services: Services = Depends(get_services),
    context: SessionContext = Depends(require_admin),
):
    return await _submit_form(request, LEADER_FORM, services, context)


@router.get("/addTestimonial", name="add_testimonial")
async def add_testimonial_form(request: Request, context: SessionContext = Depends(require_admin)):
    return _show_form(request, TESTIMONIAL_FORM, context)


@router.post("/addTestimonial")
async def add_testimonial(
    request: Request,
    services: Services = Depends(get_services),
    context: SessionContext = Depends(require_admin),
):
    return await _submit_form(request, TESTIMONIAL_FORM, services, context)
