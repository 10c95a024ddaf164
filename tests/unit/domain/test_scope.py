"""Tests for query scopes."""

from uuid import uuid4

from app.domain.roles import Role
from app.domain.scope import QueryScope


class TestQueryScope:
    """Scope derivation from the caller."""

    def test_user_is_pinned_to_itself(self, make_identity):
        org_id = uuid4()
        identity = make_identity(Role.USER, org_id)

        scope = QueryScope.for_caller(identity, org_id)

        assert scope == QueryScope(organization_id=org_id, user_id=identity.id)

    def test_admin_sees_whole_organization(self, make_identity):
        org_id = uuid4()
        scope = QueryScope.for_caller(make_identity(Role.ADMIN, org_id), org_id)
        assert scope.user_id is None

    def test_superadmin_still_filters_by_organization(self, make_identity):
        org_id = uuid4()
        scope = QueryScope.for_caller(make_identity(Role.SUPERADMIN), org_id)
        assert scope == QueryScope(organization_id=org_id)
