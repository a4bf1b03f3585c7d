import pytest
from io import StringIO
from types import SimpleNamespace

from django.core.management import call_command

from ..models import CustomUser
from ..roles import Principal, normalize_role


class TestPrincipal:
    @pytest.mark.parametrize("role", ["admin", "ADMIN", " Super_Admin "])
    def test_elevated_roles_ignore_case(self, role):
        assert Principal(id=1, role=role).is_elevated

    @pytest.mark.parametrize("role", ["agent", "customer", "", None])
    def test_not_elevated(self, role):
        assert not Principal(id=1, role=role).is_elevated

    def test_ownership_is_an_id_match(self):
        p = Principal(id=7, role="customer")
        assert p.owns(7)
        assert p.owns("7")
        assert not p.owns(8)
        assert not p.owns(None)
        assert not Principal(id=None).owns(None)

    def test_from_user(self):
        p = Principal.from_user(SimpleNamespace(pk=3, role="Agent"))
        assert p == Principal(id=3, role="agent")
        assert p.is_agent

    def test_system_principal(self):
        system = Principal.system()
        assert system.id is None
        assert system.is_elevated


def test_normalize_role():
    assert normalize_role(" ADMIN ") == "admin"
    assert normalize_role(None) == ""


@pytest.mark.django_db
class TestCreateTestUsersCommand:
    def test_idempotent(self):
        call_command("create_test_users", stdout=StringIO())
        out = StringIO()
        call_command("create_test_users", stdout=out)
        assert "already exists" in out.getvalue()
        assert CustomUser.objects.filter(role="agent").count() == 2
        assert CustomUser.objects.get(username="pickup_agent").agent_type == "PICKUP"


def test_django_superuser_is_treated_as_super_admin():
    p = Principal.from_user(SimpleNamespace(pk=1, role="customer", is_superuser=True))
    assert p.is_elevated
