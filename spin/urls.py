from django.urls import path

from . import views


app_name = "spin"

urlpatterns = [
    path("spin/", views.spin, name="spin"),
    path("prizes/", views.list_prizes, name="list_prizes"),
]
