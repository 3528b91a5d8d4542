"""
URL configuration for checkout endpoints.
"""

from django.urls import path

from api.v1.checkout import views

app_name = "checkout"

urlpatterns = [
    path(
        "",
        views.CreateCheckoutView.as_view(),
        name="create-checkout",
    ),
]
