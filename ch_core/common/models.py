# ch_core/common/models.py
from __future__ import annotations

import uuid

from django.db import models


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class ScopedModel(TimeStampedModel):
    """
    Organization + team scope at the data layer.
    (Middleware enforces request scope; services enforce record ownership.)
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    organization_id = models.UUIDField(db_index=True)
    team_id = models.UUIDField(db_index=True)

    class Meta:
        abstract = True


class PdfArtifactMixin(models.Model):
    """
    Rendered-document reference patched in by the PDF job runner.
    Empty fields mean "not rendered yet"; job status lives on PdfJob.
    """
    pdf_file = models.CharField(max_length=500, blank=True, default="")
    pdf_url = models.CharField(max_length=1000, blank=True, default="")
    pdf_generated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        abstract = True
