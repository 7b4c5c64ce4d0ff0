"""
Access control gate.

Every mutating or privileged endpoint resolves an AuthContext once per request
through require_role() and passes it explicitly to the service layer.
"""

from dataclasses import dataclass
from functools import wraps

from django.apps import apps

from utils.errors import Forbidden, Unauthenticated

ROLE_USER = "user"
ROLE_AUTHOR = "author"
ROLE_ADMIN = "admin"

AUTHORING_ROLES = (ROLE_AUTHOR, ROLE_ADMIN)


@dataclass(frozen=True)
class AuthContext:
    user_id: str
    role: str = ROLE_USER
    name: str = ""
    email: str = ""

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN

    @classmethod
    def from_user(cls, user):
        return cls(
            user_id=user.pk,
            role=getattr(user, "role", None) or ROLE_USER,
            name=getattr(user, "name", "") or "",
            email=user.email or "",
        )


def get_auth_context(request):
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        return None
    return AuthContext.from_user(user)


def require_role(request, allowed_roles):
    """Return the caller's AuthContext or raise before any other work happens."""
    if not allowed_roles:
        raise ValueError("allowed_roles must not be empty")

    context = get_auth_context(request)
    if context is None:
        raise Unauthenticated()
    if context.role not in allowed_roles:
        raise Forbidden()
    return context


def role_required(*roles):
    """View decorator; the resolved context is available as request.auth."""

    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            request.auth = require_role(request, roles)
            return view_func(request, *args, **kwargs)

        return wrapper

    return decorator


def get_author_id_for(context):
    Author = apps.get_model("blog", "Author")
    return Author.objects.filter(user_id=context.user_id).values_list("id", flat=True).first()


def ensure_blog_owner(context, blog):
    if context.is_admin:
        return
    author_id = get_author_id_for(context)
    if author_id is None or author_id != blog.author_id:
        raise Forbidden("Forbidden: not the owner")


def ensure_draft_owner(context, draft):
    if context.is_admin:
        return
    if draft.user_id != context.user_id:
        raise Forbidden("Forbidden: not the owner")
