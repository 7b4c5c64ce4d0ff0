from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from accounts.permissions import AUTHORING_ROLES, ROLE_ADMIN, get_auth_context, role_required
from blog import publishing, services
from blog.forms import (
    AuthorPromoteForm,
    AuthorUpdateForm,
    BlogCreateForm,
    BlogIdForm,
    BlogRecoverForm,
    BlogUpdateForm,
    CommentForm,
    DraftForm,
    DraftPatchForm,
    DraftPublishForm,
    LikeForm,
    PostActionForm,
    PublishForm,
)
from utils.api import Result, api_endpoint, form_error, read_json
from utils.errors import InvalidInput

MAX_POPULAR_CATEGORIES = 50


def _validated(form):
    if not form.is_valid():
        raise form_error(form)
    return form.cleaned_data


def _with_query_id(request, data):
    """Merge ?id= into the body; the query string wins."""
    if request.GET.get("id"):
        return {**data, "id": request.GET["id"]}
    return data


def _outcome_result(outcome):
    return Result.success(outcome.to_dict(), status=201 if outcome.created else 200, warnings=outcome.warnings)


def _draft_result(write):
    status = 201 if write.created and write.draft.blog_id is None else 200
    return Result.success({"draft": write.draft.to_dict(), "conflict": write.conflict}, status=status)


# Blogs


@require_http_methods(["GET", "POST", "PATCH", "DELETE"])
@api_endpoint
def blog_collection(request):
    handlers = {
        "GET": _get_blogs,
        "POST": _create_blog,
        "PATCH": _update_blog,
        "DELETE": _delete_blog,
    }
    return handlers[request.method](request)


def _get_blogs(request):
    slug = request.GET.get("slug")
    if slug:
        blog = services.get_blog_by_slug(slug, context=get_auth_context(request))
        next_blog = services.get_next_blog(blog)
        return Result.success(
            {
                "blog": blog.to_dict(),
                "next": next_blog.to_dict() if next_blog else None,
            }
        )

    blogs = services.list_published_blogs(
        category=request.GET.get("category"),
        author_slug=request.GET.get("author"),
    )
    return Result.success({"blogs": [blog.to_dict() for blog in blogs]})


@role_required(*AUTHORING_ROLES)
def _create_blog(request):
    data = _validated(BlogCreateForm(read_json(request)))
    blog = services.create_blog(request.auth.user_id, data)
    return Result.success({"blog": blog.to_dict()}, status=201)


@role_required(*AUTHORING_ROLES)
def _update_blog(request):
    form = BlogUpdateForm(_with_query_id(request, read_json(request)))
    data = _validated(form)
    blog = services.update_blog(request.auth, data["id"], form.provided_data())
    return Result.success({"blog": blog.to_dict()})


@role_required(*AUTHORING_ROLES)
def _delete_blog(request):
    data = _validated(BlogIdForm(request.GET))
    unlinked = publishing.delete_blog(request.auth, data["id"])
    return Result.success({"id": data["id"], "unlinkedDrafts": unlinked})


@require_POST
@api_endpoint
@role_required(*AUTHORING_ROLES)
def recover_blog(request):
    """Update the blog if it still exists, otherwise recreate it from the payload."""
    form = BlogRecoverForm(_with_query_id(request, read_json(request)))
    _validated(form)
    data = form.provided_data()
    blog_id = data.pop("id")
    blog, created = services.recover_blog(request.auth, blog_id, data)
    return Result.success({"blog": blog.to_dict(), "recovered": created}, status=201 if created else 200)


@require_POST
@api_endpoint
@role_required(*AUTHORING_ROLES)
def publish_blog(request):
    form = PublishForm(read_json(request))
    blog_id = _validated(form)["blogId"]
    draft_id = form.cleaned_data["draftId"]
    data = form.provided_data()
    data.pop("blogId", None)
    data.pop("draftId", None)
    outcome = publishing.publish(request.auth, data, blog_id=blog_id, draft_id=draft_id)
    return _outcome_result(outcome)


@require_POST
@api_endpoint
@role_required(*AUTHORING_ROLES)
def unpublish_blog(request):
    data = _validated(BlogIdForm(_with_query_id(request, read_json(request))))
    blog = publishing.unpublish(request.auth, data["id"])
    return Result.success({"blog": blog.to_dict()})


@require_GET
@api_endpoint
def featured_blog(request):
    blog = services.get_featured_blog()
    return Result.success({"blog": blog.to_dict() if blog else None})


@require_GET
@api_endpoint
def popular_categories(request):
    try:
        limit = int(request.GET.get("limit", 6))
    except ValueError:
        raise InvalidInput("limit must be an integer") from None
    limit = max(1, min(limit, MAX_POPULAR_CATEGORIES))
    return Result.success({"categories": services.get_popular_categories(limit)})


@csrf_exempt
@require_POST
@api_endpoint
def like_blog(request):
    data = _validated(LikeForm(read_json(request)))
    return Result.success({"likes": services.like_blog(data["slug"])})


@csrf_exempt
@require_POST
@api_endpoint
def unlike_blog(request):
    data = _validated(LikeForm(read_json(request)))
    return Result.success({"likes": services.unlike_blog(data["slug"])})


@csrf_exempt
@require_http_methods(["GET", "POST"])
@api_endpoint
def comments(request):
    if request.method == "GET":
        blog_id = request.GET.get("blogId")
        if not blog_id:
            raise InvalidInput("Missing blogId")
        return Result.success({"comments": [comment.to_dict() for comment in services.list_comments(blog_id)]})

    data = _validated(CommentForm(read_json(request)))
    comment = services.add_comment(data["blogId"], data["name"], data["message"])
    return Result.success({"comment": comment.to_dict()}, status=201)


# Drafts


@require_http_methods(["GET", "POST", "PATCH", "DELETE"])
@api_endpoint
@role_required(*AUTHORING_ROLES)
def drafts(request):
    context = request.auth

    if request.method == "GET":
        if request.GET.get("draftId"):
            draft = services.get_draft(context, request.GET["draftId"])
            return Result.success({"draft": draft.to_dict() if draft else None})
        if request.GET.get("blogId"):
            draft = services.get_draft_for_blog(context, request.GET["blogId"])
            return Result.success({"draft": draft.to_dict() if draft else None})
        return Result.success({"drafts": [draft.to_dict() for draft in services.list_drafts(context)]})

    if request.method == "POST":
        form = DraftForm(read_json(request))
        data = _validated(form)
        write = publishing.save_as_draft(
            context, form.draft_fields(), blog_id=data["blogId"], base_revision=data["revision"]
        )
        return _draft_result(write)

    if request.method == "PATCH":
        form = DraftPatchForm(read_json(request))
        data = _validated(form)
        write = publishing.save_as_draft(
            context, form.draft_fields(), draft_id=data["draftId"], base_revision=data["revision"]
        )
        return _draft_result(write)

    if request.GET.get("draftId"):
        deleted = services.delete_draft(context, request.GET["draftId"])
    elif request.GET.get("blogId"):
        deleted = services.delete_draft_for_blog(context, request.GET["blogId"])
    else:
        deleted = services.delete_all_drafts(context)
    return Result.success({"deletedCount": deleted})


@require_POST
@api_endpoint
@role_required(*AUTHORING_ROLES)
def publish_draft(request):
    data = _validated(DraftPublishForm(read_json(request)))
    return _outcome_result(publishing.publish_draft(request.auth, data["draftId"]))


# Authors


@require_GET
@api_endpoint
def authors(request):
    slug = request.GET.get("slug")
    if slug:
        author = services.get_author_by_slug(slug)
        blogs = services.list_published_blogs(author_slug=author.slug)
        return Result.success({"author": author.to_dict(), "blogs": [blog.to_dict() for blog in blogs]})
    return Result.success({"authors": [author.to_dict() for author in services.list_authors()]})


# Admin


@require_http_methods(["GET", "POST", "PATCH", "DELETE"])
@api_endpoint
@role_required(ROLE_ADMIN)
def admin_authors(request):
    context = request.auth

    if request.method == "GET":
        return Result.success({"authors": [author.to_dict() for author in services.list_authors()]})

    if request.method == "POST":
        data = _validated(AuthorPromoteForm(read_json(request)))
        author, created = services.promote_user_to_author(
            context,
            user_id=data["userId"],
            email=data["email"],
            name=data["name"],
            bio=data["bio"],
            profile_image=data["profileImage"],
            slug=data["slug"],
        )
        return Result.success({"author": author.to_dict(), "created": created}, status=201 if created else 200)

    if request.method == "PATCH":
        body = read_json(request)
        target = _validated(BlogIdForm({"id": body.get("id")}))
        updates = body.get("updates")
        if not isinstance(updates, dict):
            raise InvalidInput("updates must be an object")
        form = AuthorUpdateForm(updates)
        _validated(form)
        author = services.update_author(context, target["id"], form.author_fields())
        return Result.success({"author": author.to_dict()})

    target = _validated(BlogIdForm(request.GET))
    services.delete_author(context, target["id"])
    return Result.success({"id": target["id"]})


@require_http_methods(["GET", "PATCH"])
@api_endpoint
@role_required(ROLE_ADMIN)
def admin_posts(request):
    if request.method == "GET":
        return Result.success({"blogs": [blog.to_dict() for blog in services.list_all_blogs()]})

    data = _validated(PostActionForm(read_json(request)))
    result = publishing.apply_post_action(request.auth, data["id"], data["action"])
    if data["action"] == "delete":
        return Result.success({"id": data["id"], "unlinkedDrafts": result})
    return Result.success({"blog": result.to_dict()})


@require_GET
@api_endpoint
@role_required(ROLE_ADMIN)
def admin_users(request):
    return Result.success({"users": [user.to_dict() for user in services.list_users()]})
