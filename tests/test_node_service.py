"""Tests for NodeService: CRUD, copy, move, tree building and the working set."""

import pytest

from nodetree.core.session import CURRENT_IDS_KEY, NEW_RECORDS_KEY
from nodetree.exceptions import AccessDeniedError, NodeNotFoundError, ValidationError
from nodetree.models.node import Node, NodeType
from nodetree.schemas.navigation import ClipboardMode, ClipboardRef
from nodetree.schemas.node import NodeCopyRequest, NodeCreate, NodeMoveRequest, NodeUpdate
from nodetree.services.node_service import NodeService, language_options
from tests.conftest import make_checker, make_node


def _service(db, session, **checker_kwargs):
    checker_kwargs.setdefault("role", "admin")
    return NodeService(db, make_checker(db, session=session, **checker_kwargs), session)


def _children(db, pid):
    return [n.name for n in db.query(Node).filter(Node.pid == pid).order_by(Node.sorting, Node.id)]


class TestCreate:

    def test_create_top_level(self, db, session):
        node = _service(db, session).create_node(NodeCreate(name="Top", languages="en,de"))
        assert node.id > 0
        assert node.pid == 0
        assert node.language_list == ["en", "de"]
        assert node.sorting == 128

    def test_create_remembers_new_record(self, db, session):
        node = _service(db, session).create_node(NodeCreate(name="Top"))
        assert session.get(NEW_RECORDS_KEY) == [node.id]

    def test_content_nodes_are_leaves(self, db, session):
        make_node(db, 1, type="content")
        with pytest.raises(ValidationError):
            _service(db, session).create_node(NodeCreate(name="Child", pid=1))

    def test_top_level_needs_root_capability(self, db, session):
        service = _service(db, session, role="user", permissions=["create"], mounts=[1])
        with pytest.raises(AccessDeniedError):
            service.create_node(NodeCreate(name="Top"))

    def test_create_inside_mount(self, db, session):
        make_node(db, 1)
        service = _service(db, session, role="user", permissions=["create"], mounts=[1])
        assert service.create_node(NodeCreate(name="Child", pid=1)).pid == 1

    def test_create_outside_mount_is_denied(self, db, session):
        make_node(db, 1)
        make_node(db, 7)
        service = _service(db, session, role="user", permissions=["create"], mounts=[1])
        with pytest.raises(AccessDeniedError):
            service.create_node(NodeCreate(name="Child", pid=7))

    def test_create_needs_create_capability(self, db, session):
        make_node(db, 1)
        service = _service(db, session, role="user", permissions=["edit"], mounts=[1])
        with pytest.raises(AccessDeniedError):
            service.create_node(NodeCreate(name="Child", pid=1))


class TestUpdateAndDelete:

    def test_update_fields(self, db, session):
        make_node(db, 1)
        node = _service(db, session).update_node(1, NodeUpdate(name=" Renamed ", languages="fr"))
        assert node.name == "Renamed"
        assert node.language_list == ["fr"]

    def test_node_with_children_cannot_become_content(self, db, session):
        make_node(db, 1)
        make_node(db, 2, pid=1)
        with pytest.raises(ValidationError):
            _service(db, session).update_node(1, NodeUpdate(type=NodeType.CONTENT))

    def test_update_missing_node(self, db, session):
        with pytest.raises(NodeNotFoundError):
            _service(db, session).update_node(99, NodeUpdate(name="x"))

    def test_delete_removes_subtree(self, db, session):
        make_node(db, 1)
        make_node(db, 2, pid=1)
        make_node(db, 3, pid=2)
        make_node(db, 4)

        deleted = _service(db, session).delete_node(1)

        assert sorted(deleted) == [1, 2, 3]
        assert [n.id for n in db.query(Node).all()] == [4]

    def test_delete_mount_root_without_root_capability(self, db, session):
        make_node(db, 1)
        service = _service(db, session, role="user", permissions=["delete"], mounts=[1])
        with pytest.raises(AccessDeniedError):
            service.delete_node(1)


class TestCopyAndMove:

    def test_copy_into_with_children(self, db, session):
        make_node(db, 1, name="Src")
        make_node(db, 2, pid=1, name="Child")
        make_node(db, 3, pid=2, name="Grandchild")
        make_node(db, 10, name="Target")

        clone = _service(db, session).copy_node(1, NodeCopyRequest(pid=10, mode=2, with_children=True))

        assert clone.pid == 10
        assert _children(db, clone.id) == ["Child"]
        child = db.query(Node).filter(Node.pid == clone.id).one()
        assert _children(db, child.id) == ["Grandchild"]

    def test_copy_after_places_clone_behind_target(self, db, session):
        make_node(db, 1, name="First")
        make_node(db, 2, name="Second")
        make_node(db, 3, name="Third")

        _service(db, session).copy_node(3, NodeCopyRequest(pid=1, mode=1))

        assert _children(db, 0) == ["First", "Third", "Second", "Third"]

    def test_copy_into_own_subtree_with_children_is_rejected(self, db, session):
        make_node(db, 1)
        make_node(db, 2, pid=1)
        with pytest.raises(ValidationError):
            _service(db, session).copy_node(1, NodeCopyRequest(pid=2, with_children=True))

    def test_move_into(self, db, session):
        make_node(db, 1)
        make_node(db, 2)
        assert _service(db, session).move_node(2, NodeMoveRequest(pid=1)).pid == 1

    def test_move_into_own_descendant_is_rejected(self, db, session):
        make_node(db, 1)
        make_node(db, 2, pid=1)
        make_node(db, 3, pid=2)
        service = _service(db, session)
        with pytest.raises(ValidationError):
            service.move_node(1, NodeMoveRequest(pid=3))
        with pytest.raises(ValidationError):
            service.move_node(1, NodeMoveRequest(pid=1))

    def test_move_after(self, db, session):
        make_node(db, 1, name="A")
        make_node(db, 2, name="B")
        make_node(db, 3, name="C")
        _service(db, session).move_node(1, NodeMoveRequest(pid=2, mode=1))
        assert _children(db, 0) == ["B", "A", "C"]


class TestTree:

    def test_admin_tree_from_top_level(self, db, session):
        make_node(db, 1, name="A")
        make_node(db, 2, pid=1, type="content", name="B", languages="en")
        service = _service(db, session)

        tree = service.get_tree(service.checker.view_policy())

        assert [n.name for n in tree] == ["A"]
        assert [n.name for n in tree[0].children] == ["B"]
        assert tree[0].children[0].label.link == "?nn=2"
        assert tree[0].children[0].label.languages == ["English"]

    def test_tree_limited_to_the_mount(self, db, session):
        make_node(db, 1, name="A")
        make_node(db, 2, pid=1, name="B")
        make_node(db, 7, name="Other")
        service = _service(db, session, role="user", permissions=["delete"], mounts=[1])

        tree = service.get_tree(service.checker.view_policy())

        assert [n.id for n in tree] == [1]
        assert tree[0].buttons.delete is False
        assert tree[0].children[0].buttons.delete is True

    def test_tree_below_explicit_roots(self, db, session):
        make_node(db, 1)
        make_node(db, 2, pid=1)
        make_node(db, 3, pid=2)
        service = _service(db, session)

        tree = service.get_tree(service.checker.view_policy(), root_ids=[2])

        assert [n.id for n in tree] == [2]
        assert [n.id for n in tree[0].children] == [3]

    def test_large_tree_keeps_every_row(self, db, session):
        db.add_all(Node(id=i, pid=0, type="folder", name=f"Node {i}", sorting=i) for i in range(1, 5001))
        db.add(Node(id=5001, pid=5000, type="content", name="Leaf", sorting=1))
        db.commit()
        service = _service(db, session)

        tree = service.get_tree(service.checker.view_policy())

        assert len(tree) == 5000
        last = tree[-1]
        assert last.id == 5000
        assert [n.id for n in last.children] == [5001]
        assert last.buttons.copy_children is True

    def test_copy_children_follows_the_database_count(self, db, session):
        make_node(db, 1)
        make_node(db, 2, pid=1)
        make_node(db, 3, pid=2, type="content")
        service = _service(db, session)

        assert service.repo.child_counts() == {0: 1, 1: 1, 2: 1}
        tree = service.get_tree(service.checker.view_policy(), root_ids=[2])

        assert tree[0].buttons.copy_children is True
        assert tree[0].children[0].buttons.copy_children is False

    def test_rows_below_a_cut_node_cannot_receive_it(self, db, session):
        make_node(db, 1)
        make_node(db, 2, pid=1)
        make_node(db, 3, pid=2)
        make_node(db, 4)
        service = _service(db, session)
        clipboard = ClipboardRef(mode=ClipboardMode.CUT, ids=[2])

        tree = service.get_tree(service.checker.view_policy(), clipboard=clipboard)

        node_1, node_4 = tree
        node_2 = node_1.children[0]
        node_3 = node_2.children[0]
        assert node_1.buttons.paste_into is True
        assert node_2.buttons.paste_into is False
        assert node_3.buttons.paste_into is False
        assert node_4.buttons.paste_after is True


class TestSelection:

    def test_set_selection_deduplicates(self, db, session):
        assert _service(db, session).set_selection([3, 1, 3]) == [3, 1]
        assert session.get(CURRENT_IDS_KEY) == [3, 1]

    def test_delete_selection_only_deletes_allowed_ids(self, db, session):
        make_node(db, 1)
        make_node(db, 2, pid=1)
        make_node(db, 3, pid=1)
        make_node(db, 7)
        service = _service(db, session, role="user", permissions=["delete"], mounts=[1])
        service.set_selection([1, 2, 3, 7])

        deleted = service.delete_selection()

        assert deleted == [2, 3]
        assert sorted(n.id for n in db.query(Node).all()) == [1, 7]
        assert session.get(CURRENT_IDS_KEY) == []

    def test_delete_selection_skips_ids_inside_deleted_subtrees(self, db, session):
        make_node(db, 1)
        make_node(db, 2, pid=1)
        service = _service(db, session)
        service.set_selection([1, 2])

        assert service.delete_selection() == [1]
        assert db.query(Node).count() == 0


class TestLanguages:

    def test_language_options_are_named(self):
        options = language_options()
        assert options["en"] == "English"
        assert options["de"] == "German"
