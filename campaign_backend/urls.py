from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("django-admin/", admin.site.urls),
    path("api/", include("participants.urls")),
    path("api/", include("spin.urls")),
    path("api/admin/", include("coupons.urls")),
]
