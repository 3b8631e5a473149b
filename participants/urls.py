from django.urls import path

from . import views


app_name = "participants"

urlpatterns = [
    path("register/", views.register_participant, name="register"),
    path("admin/users/", views.users_endpoint, name="users"),
    path("admin/users/export/", views.export_users_csv, name="export_users"),
]
