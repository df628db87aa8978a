"""Tests for the request gate: working-set scrubbing and single-node checks."""

import pytest

from nodetree.core.config import settings
from nodetree.core.session import ALLOWED_ROOTS_KEY, CURRENT_IDS_KEY, NEW_RECORDS_KEY
from nodetree.exceptions import AccessDeniedError
from nodetree.services.access_service import AccessService
from nodetree.services.permission_service import Action
from tests.conftest import make_checker, make_node


@pytest.fixture()
def tree(db):
    make_node(db, 1, pid=0)
    make_node(db, 2, pid=1)
    make_node(db, 3, pid=1, type="content")
    make_node(db, 7, pid=0)


def _gate(db, session, **checker_kwargs):
    return AccessService(make_checker(db, session=session, **checker_kwargs), session)


class TestScrubSelection:

    def test_scrubs_ids_outside_the_mount(self, db, session, tree):
        session.set(CURRENT_IDS_KEY, [1, 2, 3, 7])
        gate = _gate(db, session, permissions=["edit"], mounts=[1])

        assert gate.scrub_selection(Action.EDIT_ALL) == [1, 2, 3]
        assert session.get(CURRENT_IDS_KEY) == [1, 2, 3]

    def test_delete_all_also_drops_roots_without_root_capability(self, db, session, tree):
        session.set(CURRENT_IDS_KEY, [1, 2, 3, 7])
        gate = _gate(db, session, permissions=["delete"], mounts=[1])

        assert gate.scrub_selection(Action.DELETE_ALL) == [2, 3]

    def test_no_working_set_is_a_no_op(self, db, session, tree):
        assert _gate(db, session, mounts=[1]).scrub_selection(Action.EDIT_ALL) == []
        assert session.get(CURRENT_IDS_KEY) is None

    def test_check_request_scrubs_for_non_admins(self, db, session, tree):
        session.set(CURRENT_IDS_KEY, [2, 7])
        _gate(db, session, permissions=["edit"], mounts=[1]).check_request(Action.EDIT_ALL)
        assert session.get(CURRENT_IDS_KEY) == [2]

    def test_admin_working_set_is_untouched(self, db, session, tree):
        session.set(CURRENT_IDS_KEY, [2, 7, 12345])
        _gate(db, session, role="admin").check_request(Action.EDIT_ALL)
        assert session.get(CURRENT_IDS_KEY) == [2, 7, 12345]


class TestCheckRequest:

    @pytest.mark.parametrize("action", [Action.EDIT, Action.COPY, Action.DELETE, Action.SHOW])
    def test_single_node_action_outside_scope_is_denied(self, db, session, tree, action):
        gate = _gate(db, session, permissions=["create", "edit", "delete"], mounts=[1])
        with pytest.raises(AccessDeniedError):
            gate.check_request(action, 7)

    def test_action_inside_scope_passes(self, db, session, tree):
        _gate(db, session, permissions=["edit"], mounts=[1]).check_request(Action.EDIT, 2)

    def test_paste_is_not_checked_here(self, db, session, tree):
        _gate(db, session, mounts=[1]).check_request(Action.PASTE, 7)

    def test_no_action_passes(self, db, session, tree):
        _gate(db, session, mounts=[1]).check_request(None, 7)


class TestNewRecordGrant:

    def test_new_record_is_temporarily_allowed(self, db, session, tree):
        session.set(NEW_RECORDS_KEY, [7])
        gate = _gate(db, session, permissions=["edit"], mounts=[1])

        gate.check_request(Action.EDIT, 7)

        assert session.get(ALLOWED_ROOTS_KEY) == [7]

    def test_unknown_record_is_not_granted(self, db, session, tree):
        session.set(NEW_RECORDS_KEY, [2])
        gate = _gate(db, session, permissions=["edit"], mounts=[1])

        with pytest.raises(AccessDeniedError):
            gate.check_request(Action.EDIT, 7)
        assert session.get(ALLOWED_ROOTS_KEY) is None

    def test_grant_can_be_disabled(self, db, session, tree, monkeypatch):
        monkeypatch.setattr(settings, "allow_new_record_grants", False)
        session.set(NEW_RECORDS_KEY, [7])
        gate = _gate(db, session, permissions=["edit"], mounts=[1])

        with pytest.raises(AccessDeniedError):
            gate.check_request(Action.EDIT, 7)
