"""Properties of the event authorization predicates."""

from __future__ import annotations

import pytest

from roadamico_api.app.core.permissions import can_edit, can_view

RIDERS = {"id": 10, "administrator": 1}
HIKERS = {"id": 20, "administrator": None}


def _user(user_id=5, role="user", groups=()):
    return {"user_id": user_id, "role": role, "groups": list(groups), "name": "U"}


def _event(groups=(), creator=99):
    return {"creator": creator, "group_restriction": list(groups)}


class TestCanView:
    @pytest.mark.parametrize("user", [None, _user(), _user(role="admin")])
    def test_open_event_visible_to_everyone(self, user):
        assert can_view(user, _event()) is True

    def test_missing_restriction_key_counts_as_open(self):
        assert can_view(None, {"creator": 1}) is True

    def test_anonymous_cannot_view_restricted(self):
        assert can_view(None, _event([RIDERS])) is False

    @pytest.mark.parametrize("role", ["admin", "curator"])
    def test_privileged_roles_view_restricted(self, role):
        assert can_view(_user(role=role), _event([RIDERS])) is True

    def test_group_administrator_views(self):
        assert can_view(_user(user_id=1), _event([RIDERS])) is True

    def test_group_member_views(self):
        assert can_view(_user(groups=[20]), _event([RIDERS, HIKERS])) is True

    def test_outsider_cannot_view(self):
        assert can_view(_user(groups=[30]), _event([RIDERS, HIKERS])) is False

    def test_creator_alone_does_not_grant_view(self):
        assert can_view(_user(user_id=99), _event([RIDERS])) is False

    def test_unpopulated_group_ids_match_membership(self):
        assert can_view(_user(groups=[10]), _event([10])) is True
        assert can_view(_user(user_id=1), _event([10])) is False


class TestCanEdit:
    def test_anonymous_cannot_edit(self):
        assert can_edit(None, _event()) is False

    @pytest.mark.parametrize("role", ["admin", "curator"])
    def test_privileged_roles_edit(self, role):
        assert can_edit(_user(role=role), _event()) is True

    def test_creator_edits(self):
        assert can_edit(_user(user_id=99), _event()) is True

    def test_group_administrator_edits(self):
        assert can_edit(_user(user_id=1), _event([RIDERS])) is True

    def test_group_member_cannot_edit(self):
        assert can_edit(_user(groups=[10]), _event([RIDERS])) is False

    def test_stranger_cannot_edit_open_event(self):
        assert can_edit(_user(), _event()) is False
