from django.views.decorators.http import require_GET

from accounts.permissions import get_auth_context
from utils.api import Result, api_endpoint


@require_GET
@api_endpoint
def session_view(request):
    """Current session as seen by the client: {"user": {...}} or null."""
    context = get_auth_context(request)
    if context is None:
        return Result.success(None)

    user = request.user
    return Result.success(
        {
            "user": {
                "id": context.user_id,
                "role": context.role,
                "name": user.display_name,
                "email": context.email,
                "image": user.image,
            }
        }
    )
