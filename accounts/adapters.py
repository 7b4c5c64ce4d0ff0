from allauth.account.adapter import DefaultAccountAdapter
from django.conf import settings
from django.urls import reverse


class AccountAdapter(DefaultAccountAdapter):
    def is_open_for_signup(self, request):
        return getattr(settings, "ACCOUNT_ALLOW_REGISTRATION", True)

    def get_signup_redirect_url(self, request):
        if not self.is_open_for_signup(request):
            return reverse("account_login")
        return super().get_signup_redirect_url(request)

    def save_user(self, request, user, form, commit=True):
        """New sign-ins always start as plain readers; promotion is an admin action."""
        user = super().save_user(request, user, form, commit=False)
        user.role = user.ROLE_USER
        if not user.name:
            user.name = user.get_full_name() or user.email.split("@")[0]
        if commit:
            user.save()
        return user
