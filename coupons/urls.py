from django.urls import path

from . import views


app_name = "coupons"

urlpatterns = [
    path("coupons/", views.coupons_endpoint, name="coupons"),
    path("coupons/single/", views.single_coupon, name="single_coupon"),
    path("coupons/export/", views.export_coupons_csv, name="export_coupons"),
    path("coupons/<int:coupon_id>/", views.coupon_detail, name="coupon_detail"),
]
