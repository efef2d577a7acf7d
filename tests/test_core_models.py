"""
Tests for core domain models.

These tests verify the behavior of the in-memory schema models.
"""

from hedlib.core.models import (
    HedSchema,
    HedTagEntry,
    SchemaElement,
    SchemaHeader,
    UnitClass,
    Unit,
)


def _build_schema() -> HedSchema:
    schema = HedSchema(header=SchemaHeader(version="1.0.0", library="driving"))
    action = schema.add_tag(HedTagEntry(name="Action", attributes={"extensionAllowed": True}))
    drive = schema.add_tag(HedTagEntry(name="Drive"), action)
    schema.add_tag(HedTagEntry(name="Change-lanes"), drive)
    speed = schema.add_tag(HedTagEntry(name="Speed"))
    schema.add_tag(HedTagEntry(name="#", attributes={"takesValue": True}), speed)
    return schema


class TestSchemaHeader:
    """Tests for SchemaHeader model."""

    def test_standard_header(self):
        header = SchemaHeader(version="8.2.0")
        assert not header.is_library
        assert not header.is_partnered
        assert header.file_name == "HED8.2.0.xml"

    def test_partnered_library_header(self):
        header = SchemaHeader(version="1.0.0", library="traffic", with_standard="8.2.0")
        assert header.is_library
        assert header.is_partnered
        assert header.file_name == "HED_traffic_1.0.0.xml"


class TestSchemaElement:
    """Tests for attribute handling on schema elements."""

    def test_valueless_attribute_is_true(self):
        element = SchemaElement(name="Drive")
        element.set_attribute("extensionAllowed")
        assert element.get_attribute("extensionAllowed") is True
        assert element.attribute_values("extensionAllowed") == []

    def test_repeated_attribute_values_are_joined(self):
        """Repeated attributes accumulate into one comma-joined value."""
        element = SchemaElement(name="#")
        element.set_attribute("unitClass", "timeUnits")
        element.set_attribute("unitClass", "speedUnits")
        assert element.get_attribute("unitClass") == "timeUnits,speedUnits"
        assert element.attribute_values("unitClass") == ["timeUnits", "speedUnits"]

    def test_missing_attribute(self):
        element = SchemaElement(name="Drive")
        assert not element.has_attribute("requireChild")
        assert element.get_attribute("requireChild", False) is False
        assert element.attribute_values("requireChild") == []


class TestHedTagEntry:
    """Tests for tag hierarchy nodes."""

    def test_long_name_and_depth(self):
        schema = _build_schema()
        entry = schema.get_tag("Change-lanes")
        assert entry.long_name == "Action/Drive/Change-lanes"
        assert entry.depth == 3
        assert schema.get_tag("Action").depth == 1

    def test_placeholder_child(self):
        schema = _build_schema()
        speed = schema.get_tag("Speed")
        assert speed.takes_value
        assert speed.value_child.is_placeholder
        assert not schema.get_tag("Drive").takes_value

    def test_get_child_is_case_insensitive(self):
        schema = _build_schema()
        drive = schema.get_tag("Drive")
        assert drive.get_child("change-LANES") is schema.get_tag("Change-lanes")
        assert drive.get_child("Brake") is None

    def test_extension_allowed_is_inherited(self):
        """extensionAllowed on an ancestor applies to all descendants."""
        schema = _build_schema()
        assert schema.get_tag("Change-lanes").allows_extension()
        assert not schema.get_tag("Speed").allows_extension()

    def test_placeholder_never_allows_extension(self):
        schema = _build_schema()
        assert not schema.get_tag("Speed").value_child.allows_extension()


class TestHedSchema:
    """Tests for HedSchema model."""

    def test_term_lookup_is_case_insensitive(self):
        schema = _build_schema()
        assert schema.get_tag("drive") is schema.get_tag("Drive")
        assert schema.has_term("CHANGE-LANES")
        assert not schema.has_term("Brake")

    def test_placeholders_are_not_terms(self):
        schema = _build_schema()
        assert schema.get_tag("#") is None

    def test_get_tag_by_long_name(self):
        schema = _build_schema()
        assert schema.get_tag_by_long_name("Action/Drive/Change-lanes").name == "Change-lanes"
        assert schema.get_tag_by_long_name("Drive/Change-lanes") is None
        assert schema.get_tag_by_long_name("") is None

    def test_iter_tags_is_depth_first(self):
        schema = _build_schema()
        names = [entry.name for entry in schema.iter_tags()]
        assert names == ["Action", "Drive", "Change-lanes", "Speed", "#"]

    def test_duplicate_terms(self):
        schema = _build_schema()
        schema.add_tag(HedTagEntry(name="drive"), schema.get_tag("Speed"))
        duplicates = schema.duplicate_terms()
        assert list(duplicates.keys()) == ["drive"]
        assert len(duplicates["drive"]) == 2

    def test_first_definition_wins(self):
        """Repeated definitions keep the first and are recorded."""
        schema = HedSchema()
        first = UnitClass(name="timeUnits", units=[Unit(name="s")])
        schema.add_unit_class(first)
        schema.add_unit_class(UnitClass(name="timeUnits"))
        assert schema.unit_classes["timeUnits"] is first
        assert schema.duplicate_definitions == [("unit_classes", "timeUnits")]

    def test_get_unit_searches_all_classes(self):
        schema = HedSchema()
        schema.add_unit_class(UnitClass(name="timeUnits", units=[Unit(name="s")]))
        schema.add_unit_class(UnitClass(name="speedUnits", units=[Unit(name="mph")]))
        assert schema.get_unit("mph").name == "mph"
        assert schema.get_unit("MPH") is None

    def test_summary(self):
        schema = _build_schema()
        schema.add_unit_class(UnitClass(name="timeUnits", units=[Unit(name="s"), Unit(name="hour")]))
        summary = schema.summary()
        assert summary["library"] == "driving"
        assert summary["version"] == "1.0.0"
        assert summary["with_standard"] is None
        assert summary["tags"] == 5
        assert summary["root_tags"] == 2
        assert summary["max_depth"] == 3
        assert summary["unit_classes"] == 1
        assert summary["units"] == 2

    def test_version_spec(self):
        schema = _build_schema()
        assert str(schema.version_spec) == "driving_1.0.0"
