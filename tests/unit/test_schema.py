"""
Unit tests for schema projections and introspection.

Tests cover:
- Object name validation
- Row projection and JSON column decoding
- Display field resolution priority
- The once-per-file display_field migration
"""

import pytest

from workspace.objectstore.schema import (
    FieldDef,
    FieldKind,
    MigrationCache,
    ObjectDef,
    SchemaIntrospector,
    is_valid_object_name,
    parse_json_list,
    resolve_display_field,
)


def _field(name, type="text", sort_order=0):
    return FieldDef(id=f"f_{name}", object_id="o1", name=name, type=type, sort_order=sort_order)


class TestTypes:
    """Tests for schema dataclasses and helpers."""

    @pytest.mark.parametrize("name", ["Task", "_private", "my-object", "v2_items"])
    def test_valid_names(self, name):
        assert is_valid_object_name(name)

    @pytest.mark.parametrize(
        "name", ["", "1task", "my object", "x;DROP TABLE objects", "a'b", "ä", "Task\n", "\nTask"]
    )
    def test_invalid_names(self, name):
        assert not is_valid_object_name(name)

    def test_parse_json_list(self):
        assert parse_json_list('["a","b"]') == ["a", "b"]
        assert parse_json_list(None) is None
        assert parse_json_list("") is None
        assert parse_json_list("{broken") is None
        assert parse_json_list('{"a": 1}') is None

    def test_field_from_row(self):
        """Enum JSON is decoded; unknown types map to OTHER."""
        f = FieldDef.from_row(
            {
                "id": "f1",
                "object_id": "o1",
                "name": "Status",
                "type": "enum",
                "enum_values": '["todo","done"]',
                "enum_colors": '["#fff","#000"]',
                "sort_order": 3,
                "required": "true",
            }
        )
        assert f.enum_values == ["todo", "done"]
        assert f.enum_colors == ["#fff", "#000"]
        assert f.kind is FieldKind.ENUM
        assert f.sort_order == 3
        assert f.required is True

        assert FieldDef.from_row({"id": "f2", "name": "x", "type": "geo"}).kind is FieldKind.OTHER

    def test_field_to_dict_echoes_row(self):
        """Extra columns are kept; enum columns come back parsed."""
        row = {
            "id": "f1",
            "name": "Status",
            "type": "enum",
            "enum_values": '["a"]',
            "enum_colors": None,
            "custom_column": "kept",
        }
        data = FieldDef.from_row(row).to_dict()
        assert data["custom_column"] == "kept"
        assert data["enum_values"] == ["a"]
        assert data["enum_colors"] is None

    def test_relation_requires_target(self):
        assert not _field("Owner", "relation").is_relation
        f = FieldDef.from_row(
            {"id": "f", "name": "Owner", "type": "relation", "related_object_id": "o2"}
        )
        assert f.is_relation


class TestDisplayField:
    """Tests for resolve_display_field priority."""

    def test_configured_field_wins(self):
        obj = ObjectDef(id="o1", name="Task", display_field="Code")
        assert resolve_display_field(obj, [_field("Title")]) == "Code"

    def test_name_or_title_word(self):
        obj = ObjectDef(id="o1", name="Task")
        fields = [_field("Summary"), _field("Full Name", sort_order=1)]
        assert resolve_display_field(obj, fields) == "Full Name"

    def test_word_boundary(self):
        """'Username' does not count as a name field."""
        obj = ObjectDef(id="o1", name="Account")
        fields = [_field("Notes"), _field("Username", sort_order=1)]
        assert resolve_display_field(obj, fields) == "Notes"

    def test_first_text_field(self):
        obj = ObjectDef(id="o1", name="Deal")
        fields = [_field("Amount", "number"), _field("Summary", sort_order=1)]
        assert resolve_display_field(obj, fields) == "Summary"

    def test_lowest_sort_order(self):
        obj = ObjectDef(id="o1", name="Metric")
        fields = [_field("Value", "number", sort_order=2), _field("When", "date", sort_order=1)]
        assert resolve_display_field(obj, fields) == "When"

    def test_no_fields(self):
        assert resolve_display_field(ObjectDef(id="o1", name="Empty"), []) == "id"


class TestSchemaIntrospector:
    """Tests for SchemaIntrospector against a seeded file."""

    @pytest.fixture
    def introspector(self, bridge):
        return SchemaIntrospector(bridge, MigrationCache())

    @pytest.mark.asyncio
    async def test_migration_runs_once_per_file(self, introspector, runner, tasks_db):
        await introspector.ensure_schema_column(tasks_db.path)
        await introspector.ensure_schema_column(tasks_db.path)

        assert len(runner.statements("ALTER TABLE")) == 1
        assert tasks_db.path in introspector.migrations

        obj = await introspector.get_object(tasks_db.path, "Task")
        assert "display_field" in obj.to_dict()
        assert obj.display_field is None

    @pytest.mark.asyncio
    async def test_migration_failure_is_silent(self, introspector, seed):
        """Files without an objects table are marked and not retried."""
        db = seed("other")
        db.execute("DROP TABLE objects")

        await introspector.ensure_schema_column(db.path)
        assert len(introspector.migrations) == 1

    @pytest.mark.asyncio
    async def test_get_object_schema_orders_fields(self, introspector, seed):
        db = seed()
        db.add_object("o1", "Deal")
        db.add_field("f3", "o1", "Stage", "enum", sort_order=3, enum_values=["New"])
        db.add_field("f1", "o1", "Name", sort_order=1)
        db.add_field("f2", "o1", "Amount", "number", sort_order=2)
        db.add_status("s2", "o1", "Won", sort_order=2)
        db.add_status("s1", "o1", "Open", "#123456", sort_order=1)

        schema = await introspector.get_object_schema(db.path, "Deal")

        assert [f.name for f in schema.fields] == ["Name", "Amount", "Stage"]
        assert [s.name for s in schema.statuses] == ["Open", "Won"]
        assert schema.statuses[0].color == "#123456"
        assert schema.field_by_name("Stage").enum_values == ["New"]
        assert await introspector.get_object_schema(db.path, "Nope") is None

    @pytest.mark.asyncio
    async def test_get_object_by_id(self, introspector, tasks_db):
        obj = await introspector.get_object_by_id(tasks_db.path, "o_person")
        assert obj.name == "Person"
        assert await introspector.get_object_by_id(tasks_db.path, "o_nope") is None
