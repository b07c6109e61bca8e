# tests/conftest.py
import sys
from pathlib import Path
import pytest

# Make "src" importable
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from fieldtypes import FieldTypeRegistry
from formschema import Field, Module
from formstate import EditorStore
from schema_validation import SchemaValidator


@pytest.fixture(scope="session")
def registry():
    # Loads built-in types from fieldtypes/specs.py
    return FieldTypeRegistry()


@pytest.fixture
def validator(registry):
    return SchemaValidator(registry)


@pytest.fixture
def sample_module():
    # section_1 > (name, details > notes), plus a root-level email
    return Module(
        id=7,
        title_en="Intake",
        fields=(
            Field(id="section_1", field_type="Section", label_en="Applicant", order=1),
            Field(id="name", field_type="TextBox", label_en="Name", parent_id="section_1", order=1),
            Field(id="details", field_type="Panel", label_en="Details", parent_id="section_1", order=2),
            Field(id="notes", field_type="TextArea", label_en="Notes", parent_id="details", order=1),
            Field(id="email", field_type="TextBox", label_en="Email", order=2),
        ),
    )


@pytest.fixture
def store(registry, validator, sample_module):
    # Fresh store per test, module already loaded
    st = EditorStore(registry=registry, validator=validator)
    st.load_module(sample_module)
    return st
