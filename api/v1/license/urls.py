"""
URL configuration for license endpoints.
"""

from django.urls import path

from api.v1.license import views

app_name = "license"

urlpatterns = [
    path(
        "active",
        views.ActiveLicenseView.as_view(),
        name="active-license",
    ),
    path(
        "state",
        views.LicenseStatusView.as_view(),
        name="license-status",
    ),
    path(
        "trial",
        views.StartTrialView.as_view(),
        name="start-trial",
    ),
    path(
        "cancel",
        views.CancelLicenseView.as_view(),
        name="cancel-license",
    ),
]
