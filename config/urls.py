from django.contrib import admin
from django.urls import include, path

from blog.urls import admin_urlpatterns, content_urlpatterns

urlpatterns = [
    # Admin
    path("admin/", admin.site.urls),
    # Authentication
    path("accounts/", include("allauth.urls")),
    path("api/auth/", include("accounts.urls")),
    # JSON API
    path("api/content/", include(content_urlpatterns)),
    path("api/admin/", include(admin_urlpatterns)),
    path("api/newsletter/", include("newsletter.urls")),
]
