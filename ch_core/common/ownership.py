# ch_core/common/ownership.py
from __future__ import annotations

from typing import Type, TypeVar
from uuid import UUID

from django.db import models
from rest_framework.exceptions import NotFound, PermissionDenied

M = TypeVar("M", bound=models.Model)


def get_owned(
    model: Type[M],
    *,
    organization_id: UUID,
    pk: UUID,
    label: str | None = None,
    for_update: bool = False,
) -> M:
    """
    Load a scoped row by id and check it belongs to the caller's organization.

    Missing -> 404. Present under another organization -> 403, never an
    empty result.
    """
    label = label or model._meta.verbose_name.title()
    qs = model.objects.select_for_update() if for_update else model.objects.all()
    obj = qs.filter(pk=pk).first()
    if obj is None:
        raise NotFound(f"{label} not found.")
    if getattr(obj, "organization_id", None) != organization_id:
        raise PermissionDenied(f"{label} belongs to another organization.")
    return obj
