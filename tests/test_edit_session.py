"""
Tests for EditSession, the state owner.

These walk through the editor the way a user would: drop components from the
palette, drag them around, rename and delete, and check that the tree, both
schemas and the form data agree after every step.
"""

import pytest

from formcraft.edit_session import EditSession, ExistingNodeDrag, NewComponentDrag, initial_state
from formcraft.node_model import ROOT_ID, IdFactory, collect_ids, find_node, node_from_dict
from formcraft.schema_projector import scope_to_field_id
from formcraft.tree_graph import TreeIntegrityError


@pytest.fixture
def session():
    """Strict session with deterministic ids: field_1, field_2, ..."""
    return EditSession(strict_checks=True, id_factory=IdFactory(clock=lambda: 0))


@pytest.fixture
def commits(session):
    """Records every committed state."""
    seen = []
    session.set_on_state_change(seen.append)
    return seen


def child_ids(node):
    return [c.id for c in node.children]


def control_ids(elements):
    ids = []
    for element in elements:
        if element['type'] == 'Control':
            ids.append(scope_to_field_id(element['scope']))
        else:
            ids.extend(control_ids(element['elements']))
    return ids


def assert_consistent(session):
    """The artifacts must describe exactly the fields in the tree."""
    ids = collect_ids(session.tree)
    assert len(ids) == len(set(ids))
    fields = [find_node(session.tree, i) for i in ids]
    field_ids = {n.id for n in fields if n.kind == 'field' and n.field_type != 'empty'}
    assert set(session.data_schema['properties']) == field_ids
    assert set(control_ids(session.ui_layout_schema['elements'])) == field_ids
    assert set(session.form_data) == field_ids


class TestInitialState:

    def test_fresh_session(self, session):
        assert session.tree.id == ROOT_ID
        assert session.tree.children == ()
        assert session.data_schema == {'type': 'object', 'properties': {}, 'required': []}
        assert session.ui_layout_schema == {'type': 'VerticalLayout', 'elements': []}
        assert session.form_data == {}
        assert session.selection is None
        assert session.selected_node is None

    def test_state_matches_initial_state(self, session):
        assert session.state == initial_state()


class TestDropNewComponent:

    def test_field_into_new_container(self, session):
        """Drop a column on the root, then a text field into its first gap."""
        assert session.drop_new_component('container', 'column', ROOT_ID)
        container_id = session.tree.children[0].id
        assert container_id == 'field_1'

        assert session.drop_new_component('field', 'string', f'dropzone-0-{container_id}')
        field_id = session.tree.children[0].children[0].id

        assert session.data_schema['properties'] == {field_id: {'type': 'string', 'title': 'New string'}}
        layout = session.ui_layout_schema['elements'][0]
        assert layout['type'] == 'VerticalLayout'
        assert layout['elements'] == [{
            'type': 'Control',
            'scope': f'#/properties/{field_id}',
            'label': 'New string',
            'options': {'format': 'string'},
        }]
        assert session.form_data == {field_id: None}
        assert_consistent(session)

    def test_insert_between_siblings(self, session):
        session.drop_new_component('field', 'string', ROOT_ID)
        session.drop_new_component('field', 'number', ROOT_ID)
        first, second = child_ids(session.tree)

        assert session.drop_new_component('field', 'boolean', f'dropzone-1-{ROOT_ID}')
        new_id = session.tree.children[1].id
        assert child_ids(session.tree) == [first, new_id, second]
        assert session.data_schema['properties'][new_id]['type'] == 'boolean'
        assert_consistent(session)

    def test_containers_do_not_enter_form_data(self, session):
        session.drop_new_component('container', 'row', ROOT_ID)
        assert session.data_schema['properties'] == {}
        assert session.form_data == {}
        assert session.ui_layout_schema['elements'][0]['type'] == 'HorizontalLayout'

    def test_unresolvable_target_appends_to_root(self, session):
        session.drop_new_component('field', 'string', ROOT_ID)
        assert session.drop_new_component('field', 'number', 'dropzone-0-nowhere')
        assert session.drop_new_component('field', 'number', None)
        assert len(session.tree.children) == 3
        assert_consistent(session)

    def test_unknown_component_is_rejected(self, session, commits):
        assert not session.drop_new_component('widget', 'string', ROOT_ID)
        assert not session.drop_new_component('field', 'date', ROOT_ID)
        assert session.tree.children == ()
        assert commits == []

    def test_ids_unique_across_many_drops(self, session):
        for _ in range(10):
            session.drop_new_component('field', 'string', ROOT_ID)
        ids = collect_ids(session.tree)
        assert len(ids) == len(set(ids)) == 11


class TestDropExistingNode:

    @pytest.fixture
    def abc(self, session):
        for field_type in ('string', 'number', 'boolean'):
            session.drop_new_component('field', field_type, ROOT_ID)
        return child_ids(session.tree)

    def test_forward_move_in_same_container(self, session, abc):
        a, b, c = abc
        assert session.drop_existing_node(a, f'dropzone-2-{ROOT_ID}')
        assert child_ids(session.tree) == [b, a, c]

    def test_move_to_end(self, session, abc):
        a, b, c = abc
        assert session.drop_existing_node(a, f'dropzone-3-{ROOT_ID}')
        assert child_ids(session.tree) == [b, c, a]

    def test_drop_on_adjacent_gap_is_noop(self, session, abc, commits):
        a, b, c = abc
        assert not session.drop_existing_node(b, f'dropzone-1-{ROOT_ID}')
        assert not session.drop_existing_node(b, f'dropzone-2-{ROOT_ID}')
        assert child_ids(session.tree) == [a, b, c]
        assert commits == []

    def test_drop_on_itself_is_noop(self, session, abc):
        a, _, _ = abc
        assert not session.drop_existing_node(a, a)

    def test_move_into_container_keeps_form_data(self, session, abc):
        a, b, c = abc
        session.update_form_data({a: 'hello'})
        session.drop_new_component('container', 'row', ROOT_ID)
        box = session.tree.children[-1].id

        assert session.drop_existing_node(a, box)
        assert child_ids(find_node(session.tree, box)) == [a]
        assert session.form_data[a] == 'hello'
        assert session.ui_layout_schema['elements'][-1]['elements'][0]['scope'] == f'#/properties/{a}'
        assert_consistent(session)

    def test_no_cycles(self, session, commits):
        session.drop_new_component('container', 'column', ROOT_ID)
        outer = session.tree.children[0].id
        session.drop_new_component('container', 'row', outer)
        inner = find_node(session.tree, outer).children[0].id
        before = session.tree
        commits.clear()

        assert not session.drop_existing_node(outer, inner)
        assert not session.drop_existing_node(outer, f'dropzone-0-{inner}')
        assert not session.drop_existing_node(outer, outer)
        assert session.tree is before
        assert commits == []

    def test_root_and_unknown_nodes_cannot_move(self, session, abc):
        assert not session.drop_existing_node(ROOT_ID, f'dropzone-0-{ROOT_ID}')
        assert not session.drop_existing_node('ghost', f'dropzone-0-{ROOT_ID}')


class TestRenameAndSelect:

    def test_rename_selected_updates_both_schemas(self, session):
        session.drop_new_component('field', 'string', ROOT_ID)
        field_id = session.tree.children[0].id
        form_data = session.form_data

        assert session.select(field_id)
        assert session.rename_selected('Email')
        assert session.data_schema['properties'][field_id]['title'] == 'Email'
        assert session.ui_layout_schema['elements'][0]['label'] == 'Email'
        assert session.selected_node.title == 'Email'
        assert session.form_data is form_data

    def test_rename_container_updates_layout_label(self, session):
        session.drop_new_component('container', 'row', ROOT_ID)
        box = session.tree.children[0].id
        assert session.rename_node(box, 'Address')
        assert session.ui_layout_schema['elements'][0]['label'] == 'Address'

    def test_rename_to_same_title_is_noop(self, session):
        session.drop_new_component('field', 'string', ROOT_ID)
        field_id = session.tree.children[0].id
        assert not session.rename_node(field_id, 'New string')

    def test_rename_selected_without_selection(self, session):
        assert not session.rename_selected('Anything')

    def test_select_missing_id_clears_selection(self, session):
        session.drop_new_component('field', 'string', ROOT_ID)
        session.select(session.tree.children[0].id)
        assert session.select('ghost')
        assert session.selection is None
        assert not session.select('ghost')

    def test_selection_reads_current_tree(self, session):
        session.drop_new_component('field', 'string', ROOT_ID)
        field_id = session.tree.children[0].id
        session.select(field_id)
        session.rename_node(field_id, 'Renamed')
        assert session.selected_node.title == 'Renamed'


class TestDelete:

    def test_delete_container_scrubs_every_artifact_at_once(self, session, commits):
        session.drop_new_component('container', 'column', ROOT_ID)
        box = session.tree.children[0].id
        session.drop_new_component('field', 'string', box)
        session.drop_new_component('field', 'number', box)
        removed = collect_ids(find_node(session.tree, box))
        commits.clear()

        assert session.delete_node(box)
        assert len(commits) == 1
        assert len(removed) == 3
        for node_id in removed:
            assert find_node(session.tree, node_id) is None
            assert node_id not in session.data_schema['properties']
            assert node_id not in session.form_data
        assert session.ui_layout_schema['elements'] == []

    def test_delete_selected_clears_selection(self, session):
        session.drop_new_component('field', 'string', ROOT_ID)
        field_id = session.tree.children[0].id
        session.select(field_id)

        assert session.delete_selected()
        assert session.selection is None
        assert session.selected_node is None
        assert session.tree.children == ()

    def test_delete_keeps_unrelated_selection(self, session):
        session.drop_new_component('field', 'string', ROOT_ID)
        session.drop_new_component('field', 'number', ROOT_ID)
        keep, drop = child_ids(session.tree)
        session.select(keep)
        session.delete_node(drop)
        assert session.selection == keep

    def test_stale_operations_are_noops(self, session):
        assert not session.delete_node('ghost')
        assert not session.delete_node(ROOT_ID)
        assert not session.delete_selected()
        assert not session.rename_node('ghost', 'X')


class TestClearAll:

    def test_clear_all_resets(self, session):
        session.drop_new_component('field', 'string', ROOT_ID)
        session.select(session.tree.children[0].id)
        assert session.clear_all()
        assert session.state == initial_state()

    def test_clear_all_on_empty_form(self, session):
        assert not session.clear_all()


class TestFormData:

    def test_update_accepts_live_fields_only(self, session):
        session.drop_new_component('field', 'number', ROOT_ID)
        field_id = session.tree.children[0].id
        assert session.update_form_data({field_id: 42, 'ghost': 1})
        assert session.form_data == {field_id: 42}

    def test_update_with_nothing_new(self, session):
        session.drop_new_component('field', 'number', ROOT_ID)
        field_id = session.tree.children[0].id
        session.update_form_data({field_id: 1})
        assert not session.update_form_data({field_id: 1})
        assert not session.update_form_data({'ghost': 1})

    def test_update_does_not_touch_tree(self, session):
        session.drop_new_component('field', 'string', ROOT_ID)
        tree = session.tree
        session.update_form_data({tree.children[0].id: 'x'})
        assert session.tree is tree


class TestGestures:

    def test_palette_drag_commits_on_drop(self, session):
        session.drag_start(NewComponentDrag('field', 'string'))
        session.drag_over(f'dropzone-0-{ROOT_ID}')
        assert session.hovered_address == f'dropzone-0-{ROOT_ID}'
        assert session.drag_end(f'dropzone-0-{ROOT_ID}')
        assert len(session.tree.children) == 1
        assert session.dragging is None
        assert session.hovered_address is None

    def test_existing_node_drag(self, session):
        session.drop_new_component('field', 'string', ROOT_ID)
        session.drop_new_component('field', 'number', ROOT_ID)
        a, b = child_ids(session.tree)
        session.drag_start(ExistingNodeDrag(a))
        assert session.drag_end(f'dropzone-2-{ROOT_ID}')
        assert child_ids(session.tree) == [b, a]

    def test_cancel_leaves_tree_alone(self, session, commits):
        session.drag_start(NewComponentDrag('field', 'string'))
        session.drag_over(ROOT_ID)
        session.drag_cancel()
        assert session.dragging is None
        assert session.hovered_address is None
        assert not session.drag_end(ROOT_ID)
        assert commits == []

    def test_drop_outside_any_target(self, session):
        session.drag_start(NewComponentDrag('field', 'string'))
        assert not session.drag_end(None)
        assert session.tree.children == ()

    def test_hover_ignored_without_drag(self, session):
        session.drag_over(ROOT_ID)
        assert session.hovered_address is None

    def test_hover_callback(self, session):
        hovered = []
        session.set_on_hover_change(hovered.append)
        session.drag_start(NewComponentDrag('container', 'row'))
        session.drag_over('dropzone-0-x')
        session.drag_over('dropzone-0-x')
        session.drag_over('dropzone-1-x')
        session.drag_end('dropzone-1-x')
        assert hovered == ['dropzone-0-x', 'dropzone-1-x', None]


class TestLoadAndSnapshot:

    def test_load_tree_rederives_artifacts(self, session):
        session.drop_new_component('field', 'string', ROOT_ID)
        kept = session.tree.children[0].id
        session.update_form_data({kept: 'keep me'})

        template = node_from_dict({
            'id': ROOT_ID, 'kind': 'container', 'field_type': 'column', 'title': 'Form',
            'children': [
                {'id': kept, 'kind': 'field', 'field_type': 'string', 'title': 'Name'},
                {'id': 'email', 'kind': 'field', 'field_type': 'string', 'title': 'Email'},
            ],
        })
        assert session.load_tree(template)
        assert session.form_data == {kept: 'keep me', 'email': None}
        assert list(session.data_schema['properties']) == [kept, 'email']
        assert_consistent(session)

    def test_load_tree_rejects_duplicate_ids(self, session):
        broken = node_from_dict({
            'id': ROOT_ID, 'kind': 'container', 'field_type': 'column', 'title': 'Form',
            'children': [
                {'id': 'a', 'kind': 'field', 'field_type': 'string', 'title': 'A'},
                {'id': 'a', 'kind': 'field', 'field_type': 'number', 'title': 'A again'},
            ],
        })
        with pytest.raises(TreeIntegrityError) as exc_info:
            session.load_tree(broken)
        assert exc_info.value.reason == 'duplicate_id'
        assert session.tree.children == ()

    def test_snapshot_is_a_deep_copy(self, session):
        session.drop_new_component('field', 'string', ROOT_ID)
        snap = session.snapshot()
        assert set(snap) == {'schema', 'ui_schema', 'form_data'}
        snap['schema']['properties'].clear()
        snap['ui_schema']['elements'].clear()
        assert session.data_schema['properties']
        assert session.ui_layout_schema['elements']
