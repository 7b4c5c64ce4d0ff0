from django.conf import settings
from django.shortcuts import redirect
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from newsletter import services
from newsletter.forms import SubscribeForm
from utils.api import Result, api_endpoint, form_error, read_json
from utils.errors import InvalidInput


@csrf_exempt
@require_POST
@api_endpoint
def subscribe(request):
    form = SubscribeForm(read_json(request))
    if not form.is_valid():
        raise form_error(form)

    _, already = services.subscribe(form.cleaned_data["email"])
    if already:
        return Result.success({"already": True, "message": "Already subscribed"})
    return Result.success({"already": False, "message": "Confirmation email sent"})


@require_GET
@api_endpoint
def confirm(request):
    token = request.GET.get("token")
    if not token:
        raise InvalidInput("Missing token")
    services.confirm(token)
    return redirect(f"{settings.APP_URL.rstrip('/')}/?subscribed=1")


@require_GET
@api_endpoint
def check(request):
    return Result.success({"exists": services.is_subscribed(request.GET.get("email"))})
