"""
Pytest configuration and shared fixtures.

This file contains pytest configuration and reusable test fixtures: small but
complete library and standard schemas in both document formats, a schema
directory and a BIDS dataset factory.
"""

import json
from pathlib import Path

import pytest

from hedlib.core.models import HedSchema
from hedlib.infrastructure.schema_loader import load_schema_from_string


DRIVING_XML = """<?xml version="1.0" encoding="UTF-8"?>
<HED library="driving" version="1.0.0">
  <prologue>Terms for annotating driving experiments.</prologue>
  <schema>
    <node>
      <name>Action</name>
      <description>Things an agent does.</description>
      <attribute><name>extensionAllowed</name></attribute>
      <node>
        <name>Drive</name>
        <description>Operate a vehicle.</description>
        <node>
          <name>Change-lanes</name>
          <description>Move to an adjacent lane.</description>
          <attribute><name>relatedTag</name><value>Brake</value></attribute>
        </node>
        <node>
          <name>Brake</name>
          <description>Slow the vehicle down.</description>
        </node>
      </node>
    </node>
    <node>
      <name>Vehicle-state</name>
      <description>Measured state of the vehicle.</description>
      <attribute><name>requireChild</name></attribute>
      <node>
        <name>Speed</name>
        <description>Rate of travel.</description>
        <node>
          <name>#</name>
          <attribute><name>takesValue</name></attribute>
          <attribute><name>unitClass</name><value>speedUnits</value></attribute>
          <attribute><name>valueClass</name><value>numericClass</value></attribute>
        </node>
      </node>
      <node>
        <name>Trip-duration</name>
        <description>Elapsed time since departure.</description>
        <node>
          <name>#</name>
          <attribute><name>takesValue</name></attribute>
          <attribute><name>unitClass</name><value>timeUnits</value></attribute>
          <attribute><name>valueClass</name><value>numericClass</value></attribute>
        </node>
      </node>
      <node>
        <name>Gear</name>
        <description>Label of the selected gear.</description>
        <node>
          <name>#</name>
          <attribute><name>takesValue</name></attribute>
          <attribute><name>valueClass</name><value>nameClass</value></attribute>
        </node>
      </node>
      <node>
        <name>Fare</name>
        <description>Amount charged for the trip.</description>
        <node>
          <name>#</name>
          <attribute><name>takesValue</name></attribute>
          <attribute><name>unitClass</name><value>currencyUnits</value></attribute>
          <attribute><name>valueClass</name><value>numericClass</value></attribute>
        </node>
      </node>
    </node>
  </schema>
  <unitClassDefinitions>
    <unitClassDefinition>
      <name>speedUnits</name>
      <attribute><name>defaultUnits</name><value>mph</value></attribute>
      <unit><name>mph</name><attribute><name>unitSymbol</name></attribute></unit>
      <unit><name>kph</name><attribute><name>unitSymbol</name></attribute></unit>
    </unitClassDefinition>
    <unitClassDefinition>
      <name>timeUnits</name>
      <attribute><name>defaultUnits</name><value>s</value></attribute>
      <unit><name>second</name><attribute><name>SIUnit</name></attribute></unit>
      <unit>
        <name>s</name>
        <attribute><name>SIUnit</name></attribute>
        <attribute><name>unitSymbol</name></attribute>
      </unit>
      <unit><name>hour</name></unit>
    </unitClassDefinition>
    <unitClassDefinition>
      <name>currencyUnits</name>
      <attribute><name>defaultUnits</name><value>$</value></attribute>
      <unit>
        <name>$</name>
        <attribute><name>unitPrefix</name></attribute>
        <attribute><name>unitSymbol</name></attribute>
      </unit>
      <unit><name>dollar</name></unit>
    </unitClassDefinition>
  </unitClassDefinitions>
  <unitModifierDefinitions>
    <unitModifierDefinition>
      <name>kilo</name>
      <description>SI unit multiple for 10^3.</description>
      <attribute><name>SIUnitModifier</name></attribute>
    </unitModifierDefinition>
    <unitModifierDefinition>
      <name>k</name>
      <description>SI unit multiple for 10^3.</description>
      <attribute><name>SIUnitSymbolModifier</name></attribute>
    </unitModifierDefinition>
    <unitModifierDefinition>
      <name>milli</name>
      <description>SI unit submultiple for 10^-3.</description>
      <attribute><name>SIUnitModifier</name></attribute>
    </unitModifierDefinition>
    <unitModifierDefinition>
      <name>m</name>
      <description>SI unit submultiple for 10^-3.</description>
      <attribute><name>SIUnitSymbolModifier</name></attribute>
    </unitModifierDefinition>
  </unitModifierDefinitions>
  <valueClassDefinitions>
    <valueClassDefinition>
      <name>numericClass</name>
      <description>Value must be a number.</description>
      <attribute>
        <name>allowedCharacter</name>
        <value>digits</value>
        <value>.</value>
        <value>-</value>
        <value>+</value>
        <value>e</value>
        <value>E</value>
      </attribute>
    </valueClassDefinition>
    <valueClassDefinition>
      <name>nameClass</name>
      <description>Value is a name without blanks.</description>
      <attribute>
        <name>allowedCharacter</name>
        <value>letters</value>
        <value>digits</value>
        <value>_</value>
        <value>-</value>
      </attribute>
    </valueClassDefinition>
  </valueClassDefinitions>
  <schemaAttributeDefinitions>
    <schemaAttributeDefinition>
      <name>extensionAllowed</name>
      <description>Users may add child terms below this node.</description>
      <property><name>boolProperty</name></property>
    </schemaAttributeDefinition>
    <schemaAttributeDefinition>
      <name>requireChild</name>
      <description>This node must be followed by a child or value.</description>
      <property><name>boolProperty</name></property>
    </schemaAttributeDefinition>
    <schemaAttributeDefinition>
      <name>takesValue</name>
      <description>This placeholder receives a value.</description>
      <property><name>boolProperty</name></property>
    </schemaAttributeDefinition>
    <schemaAttributeDefinition>
      <name>relatedTag</name>
      <description>A term often used with this one.</description>
    </schemaAttributeDefinition>
    <schemaAttributeDefinition>
      <name>unitClass</name>
      <description>Unit class of the value.</description>
    </schemaAttributeDefinition>
    <schemaAttributeDefinition>
      <name>valueClass</name>
      <description>Value class of the value.</description>
    </schemaAttributeDefinition>
    <schemaAttributeDefinition>
      <name>defaultUnits</name>
      <description>Units assumed when none are given.</description>
      <property><name>unitClassProperty</name></property>
    </schemaAttributeDefinition>
    <schemaAttributeDefinition>
      <name>SIUnit</name>
      <description>The unit takes SI modifiers.</description>
      <property><name>boolProperty</name></property>
      <property><name>unitProperty</name></property>
    </schemaAttributeDefinition>
    <schemaAttributeDefinition>
      <name>unitSymbol</name>
      <description>The unit is a symbol.</description>
      <property><name>boolProperty</name></property>
      <property><name>unitProperty</name></property>
    </schemaAttributeDefinition>
    <schemaAttributeDefinition>
      <name>unitPrefix</name>
      <description>The unit is written before the value.</description>
      <property><name>boolProperty</name></property>
      <property><name>unitProperty</name></property>
    </schemaAttributeDefinition>
    <schemaAttributeDefinition>
      <name>SIUnitModifier</name>
      <description>Modifier for SI unit names.</description>
      <property><name>boolProperty</name></property>
      <property><name>unitModifierProperty</name></property>
    </schemaAttributeDefinition>
    <schemaAttributeDefinition>
      <name>SIUnitSymbolModifier</name>
      <description>Modifier for SI unit symbols.</description>
      <property><name>boolProperty</name></property>
      <property><name>unitModifierProperty</name></property>
    </schemaAttributeDefinition>
    <schemaAttributeDefinition>
      <name>allowedCharacter</name>
      <description>A character or character group allowed in values.</description>
      <property><name>valueClassProperty</name></property>
    </schemaAttributeDefinition>
  </schemaAttributeDefinitions>
  <propertyDefinitions>
    <propertyDefinition><name>boolProperty</name><description>Attribute takes no value.</description></propertyDefinition>
    <propertyDefinition><name>unitClassProperty</name><description>Applies to unit classes.</description></propertyDefinition>
    <propertyDefinition><name>unitProperty</name><description>Applies to units.</description></propertyDefinition>
    <propertyDefinition><name>unitModifierProperty</name><description>Applies to unit modifiers.</description></propertyDefinition>
    <propertyDefinition><name>valueClassProperty</name><description>Applies to value classes.</description></propertyDefinition>
  </propertyDefinitions>
  <epilogue>Maintained by the driving working group.</epilogue>
</HED>
"""


DRIVING_WIKI = """HED library="driving" version="1.0.0"

'''Prologue'''
Terms for annotating driving experiments.

!# start schema

'''Action''' <nowiki>{extensionAllowed}[Things an agent does.]</nowiki>
* Drive <nowiki>[Operate a vehicle.]</nowiki>
** Change-lanes <nowiki>{relatedTag=Brake}[Move to an adjacent lane.]</nowiki>
** Brake <nowiki>[Slow the vehicle down.]</nowiki>

'''Vehicle-state''' <nowiki>{requireChild}[Measured state of the vehicle.]</nowiki>
* Speed <nowiki>[Rate of travel.]</nowiki>
** # <nowiki>{takesValue, unitClass=speedUnits, valueClass=numericClass}</nowiki>
* Trip-duration <nowiki>[Elapsed time since departure.]</nowiki>
** # <nowiki>{takesValue, unitClass=timeUnits, valueClass=numericClass}</nowiki>
* Gear <nowiki>[Label of the selected gear.]</nowiki>
** # <nowiki>{takesValue, valueClass=nameClass}</nowiki>
* Fare <nowiki>[Amount charged for the trip.]</nowiki>
** # <nowiki>{takesValue, unitClass=currencyUnits, valueClass=numericClass}</nowiki>

!# end schema

'''Unit classes'''
* speedUnits <nowiki>{defaultUnits=mph}</nowiki>
** mph <nowiki>{unitSymbol}</nowiki>
** kph <nowiki>{unitSymbol}</nowiki>
* timeUnits <nowiki>{defaultUnits=s}</nowiki>
** second <nowiki>{SIUnit}</nowiki>
** s <nowiki>{SIUnit, unitSymbol}</nowiki>
** hour
* currencyUnits <nowiki>{defaultUnits=$}</nowiki>
** $ <nowiki>{unitPrefix, unitSymbol}</nowiki>
** dollar

'''Unit modifiers'''
* kilo <nowiki>{SIUnitModifier}[SI unit multiple for 10^3.]</nowiki>
* k <nowiki>{SIUnitSymbolModifier}[SI unit multiple for 10^3.]</nowiki>
* milli <nowiki>{SIUnitModifier}[SI unit submultiple for 10^-3.]</nowiki>
* m <nowiki>{SIUnitSymbolModifier}[SI unit submultiple for 10^-3.]</nowiki>

'''Value classes'''
* numericClass <nowiki>{allowedCharacter=digits, allowedCharacter=., allowedCharacter=-, allowedCharacter=+, allowedCharacter=e, allowedCharacter=E}[Value must be a number.]</nowiki>
* nameClass <nowiki>{allowedCharacter=letters, allowedCharacter=digits, allowedCharacter=_, allowedCharacter=-}[Value is a name without blanks.]</nowiki>

'''Schema attributes'''
* extensionAllowed <nowiki>{boolProperty}[Users may add child terms below this node.]</nowiki>
* requireChild <nowiki>{boolProperty}[This node must be followed by a child or value.]</nowiki>
* takesValue <nowiki>{boolProperty}[This placeholder receives a value.]</nowiki>
* relatedTag <nowiki>[A term often used with this one.]</nowiki>
* unitClass <nowiki>[Unit class of the value.]</nowiki>
* valueClass <nowiki>[Value class of the value.]</nowiki>
* defaultUnits <nowiki>{unitClassProperty}[Units assumed when none are given.]</nowiki>
* SIUnit <nowiki>{boolProperty, unitProperty}[The unit takes SI modifiers.]</nowiki>
* unitSymbol <nowiki>{boolProperty, unitProperty}[The unit is a symbol.]</nowiki>
* unitPrefix <nowiki>{boolProperty, unitProperty}[The unit is written before the value.]</nowiki>
* SIUnitModifier <nowiki>{boolProperty, unitModifierProperty}[Modifier for SI unit names.]</nowiki>
* SIUnitSymbolModifier <nowiki>{boolProperty, unitModifierProperty}[Modifier for SI unit symbols.]</nowiki>
* allowedCharacter <nowiki>{valueClassProperty}[A character or character group allowed in values.]</nowiki>

'''Properties'''
* boolProperty <nowiki>[Attribute takes no value.]</nowiki>
* unitClassProperty <nowiki>[Applies to unit classes.]</nowiki>
* unitProperty <nowiki>[Applies to units.]</nowiki>
* unitModifierProperty <nowiki>[Applies to unit modifiers.]</nowiki>
* valueClassProperty <nowiki>[Applies to value classes.]</nowiki>

'''Epilogue'''
Maintained by the driving working group.

!# end hed
"""


STANDARD_XML = """<?xml version="1.0" encoding="UTF-8"?>
<HED version="8.2.0">
  <schema>
    <node>
      <name>Event</name>
      <description>Something that happens at a given time.</description>
      <node><name>Sensory-event</name><description>Something perceived.</description></node>
    </node>
    <node>
      <name>Item</name>
      <description>An independently existing thing.</description>
      <attribute><name>extensionAllowed</name></attribute>
      <node>
        <name>Object</name>
        <description>Something perceptible.</description>
        <node><name>Vehicle</name><description>A means of transport.</description></node>
      </node>
    </node>
  </schema>
  <schemaAttributeDefinitions>
    <schemaAttributeDefinition>
      <name>extensionAllowed</name>
      <property><name>boolProperty</name></property>
    </schemaAttributeDefinition>
  </schemaAttributeDefinitions>
  <propertyDefinitions>
    <propertyDefinition><name>boolProperty</name></propertyDefinition>
  </propertyDefinitions>
</HED>
"""


PARTNERED_XML = """<?xml version="1.0" encoding="UTF-8"?>
<HED library="traffic" version="1.0.0" withStandard="8.2.0" unmerged="true">
  <schema>
    <node>
      <name>Traffic-sign</name>
      <description>A sign regulating traffic.</description>
      <attribute><name>rooted</name><value>Object</value></attribute>
      <node><name>Stop-sign</name><description>Requires a full stop.</description></node>
    </node>
  </schema>
  <schemaAttributeDefinitions>
    <schemaAttributeDefinition>
      <name>rooted</name>
      <description>Standard schema node this top-level node is placed under.</description>
    </schemaAttributeDefinition>
  </schemaAttributeDefinitions>
</HED>
"""


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch):
    """
    Replace the global settings manager with one writing under tmp_path.

    Yields:
        The isolated SettingsManager.
    """
    import hedlib.config.settings as settings_mod

    cache_dir = tmp_path / "schema_cache"
    cache_dir.mkdir()
    monkeypatch.setattr(settings_mod, "get_schema_cache_directory", lambda: cache_dir)

    manager = settings_mod.SettingsManager(config_file=tmp_path / "config" / "settings.json")
    manager.get().log_to_file = False
    monkeypatch.setattr(settings_mod, "_settings_manager", manager)
    yield manager


@pytest.fixture
def driving_schema() -> HedSchema:
    """
    Load the driving library schema from XML.

    Returns:
        A valid library schema with tags, units and value classes.
    """
    return load_schema_from_string(DRIVING_XML)


@pytest.fixture
def standard_schema() -> HedSchema:
    """
    Load the minimal standard schema.

    Returns:
        A standard schema (no library) at version 8.2.0.
    """
    return load_schema_from_string(STANDARD_XML)


@pytest.fixture
def partnered_schema() -> HedSchema:
    """
    Load a library partnered with standard 8.2.0.

    Returns:
        A partnered library schema with one rooted node.
    """
    return load_schema_from_string(PARTNERED_XML)


@pytest.fixture
def schema_dir(tmp_path: Path) -> Path:
    """
    Create a directory holding the sample schemas under conventional names.

    Returns:
        Path to the schema directory.
    """
    directory = tmp_path / "schemas"
    directory.mkdir()
    (directory / "HED_driving_1.0.0.xml").write_text(DRIVING_XML, encoding="utf-8")
    (directory / "HED8.2.0.xml").write_text(STANDARD_XML, encoding="utf-8")
    (directory / "HED_traffic_1.0.0.mediawiki").write_text(
        _partnered_wiki(), encoding="utf-8"
    )
    return directory


@pytest.fixture
def make_dataset(tmp_path: Path):
    """
    Factory creating a BIDS dataset whose description declares a HEDVersion.

    Returns:
        Function(hed_version, name='dataset') -> dataset root path.
    """
    def _make(hed_version=None, name: str = "dataset") -> Path:
        root = tmp_path / name
        root.mkdir()
        description = {"Name": "Driving study", "BIDSVersion": "1.8.0"}
        if hed_version is not None:
            description["HEDVersion"] = hed_version
        with open(root / "dataset_description.json", "w", encoding="utf-8") as f:
            json.dump(description, f)
        return root

    return _make


def _partnered_wiki() -> str:
    return (
        'HED library="traffic" version="1.0.0" withStandard="8.2.0" unmerged="true"\n'
        "\n"
        "!# start schema\n"
        "\n"
        "'''Traffic-sign''' <nowiki>{rooted=Object}[A sign regulating traffic.]</nowiki>\n"
        "* Stop-sign <nowiki>[Requires a full stop.]</nowiki>\n"
        "\n"
        "!# end schema\n"
        "\n"
        "'''Schema attributes'''\n"
        "* rooted <nowiki>[Standard schema node this top-level node is placed under.]</nowiki>\n"
        "\n"
        "!# end hed\n"
    )
