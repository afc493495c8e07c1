# ch_core/api/urls.py
from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from ch_core.activity.api.views import ActivityEventViewSet
from ch_core.assessments.api.views import AssessmentViewSet
from ch_core.audits.api.views import (
    ActionPlanViewSet,
    AuditCompletionViewSet,
    AuditTemplateViewSet,
    ResidentAuditItemViewSet,
)
from ch_core.iam.api.auth import LoginView, LogoutView, RefreshView
from ch_core.iam.api.me import MeView
from ch_core.iam.api.session import SessionBootstrapView
from ch_core.organizations.api.views import OrganizationViewSet
from ch_core.pdf.api.views import PdfJobViewSet, PdfRenderView
from ch_core.residents.api.views import ResidentViewSet
from ch_core.teams.api.views import TeamViewSet

router = DefaultRouter()

router.register(r"organizations", OrganizationViewSet, basename="organizations")
router.register(r"teams", TeamViewSet, basename="teams")
router.register(r"residents", ResidentViewSet, basename="residents")
router.register(r"audits/templates", AuditTemplateViewSet, basename="audit-templates")
router.register(r"audits/completions", AuditCompletionViewSet, basename="audit-completions")
router.register(r"audits/action-plans", ActionPlanViewSet, basename="audit-action-plans")
router.register(r"audits/resident-items", ResidentAuditItemViewSet, basename="audit-resident-items")
router.register(r"assessments", AssessmentViewSet, basename="assessments")
router.register(r"activity/events", ActivityEventViewSet, basename="activity-events")
router.register(r"pdf/jobs", PdfJobViewSet, basename="pdf-jobs")

urlpatterns = [
    # Auth + /me + session bootstrap
    path("auth/login/", LoginView.as_view(), name="login"),
    path("auth/refresh/", RefreshView.as_view(), name="refresh"),
    path("auth/logout/", LogoutView.as_view(), name="logout"),
    path("me/", MeView.as_view(), name="me"),
    path("session/bootstrap/", SessionBootstrapView.as_view(), name="session-bootstrap"),

    # Router URLs before the PDF bridge so pdf/jobs/ never resolves as a form
    *router.urls,

    # Server-to-server PDF bridge (service token, no scope headers)
    path("pdf/<slug:form>/", PdfRenderView.as_view(), name="pdf-render"),
]
