import pytest
from django.contrib.auth.models import Group
from django.core.management import call_command

from ch_core.common.permissions import ALL_ROLES


@pytest.mark.django_db
def test_ensure_roles_is_idempotent():
    call_command("ensure_roles")
    call_command("ensure_roles")

    assert set(Group.objects.values_list("name", flat=True)) == ALL_ROLES
