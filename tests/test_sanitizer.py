import pytest
from unittest.mock import MagicMock
from typing import Optional

from pydantic import BaseModel

from firestore_submodel_odm import ConfigurationError, Sanitizer, SanitizedDocument


def make_snapshot(doc_id, data, exists=True):
    snap = MagicMock()
    snap.id = doc_id
    snap.exists = exists
    snap.to_dict.return_value = data if exists else None
    return snap


@pytest.fixture
def sanitizer():
    return Sanitizer(["displayName", "email", "age"], {"email": "n/a", "age": 0})


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------
def test_empty_properties_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        Sanitizer([], {})


def test_default_for_undeclared_property_is_rejected():
    with pytest.raises(ConfigurationError, match="undeclared"):
        Sanitizer(["name"], {"nickname": "x"})


# ---------------------------------------------------------------------------
# prepare_for_write
# ---------------------------------------------------------------------------
def test_write_keeps_only_declared_properties(sanitizer):
    data = {"displayName": "john", "password": "secret", "age": 31}
    assert sanitizer.prepare_for_write(data) == {"displayName": "john", "age": 31}


def test_write_without_merge_defaults_applies_no_defaults(sanitizer):
    assert sanitizer.prepare_for_write({"displayName": "john"}, merge_defaults=False) == {
        "displayName": "john"
    }


def test_write_with_merge_defaults_fills_missing_keys(sanitizer):
    result = sanitizer.prepare_for_write({"displayName": "john"}, merge_defaults=True)
    assert result == {"displayName": "john", "email": "n/a", "age": 0}


def test_new_data_wins_over_defaults(sanitizer):
    result = sanitizer.prepare_for_write({"email": "john@example.com"}, merge_defaults=True)
    assert result["email"] == "john@example.com"


def test_property_without_default_stays_absent(sanitizer):
    result = sanitizer.prepare_for_write({}, merge_defaults=True)
    assert "displayName" not in result


def test_write_does_not_mutate_input(sanitizer):
    data = {"displayName": "john", "junk": 1}
    sanitizer.prepare_for_write(data, merge_defaults=True)
    assert data == {"displayName": "john", "junk": 1}


def test_write_accepts_pydantic_models(sanitizer):
    class ProfileIn(BaseModel):
        displayName: str
        email: Optional[str] = None
        extra: int = 5

    result = sanitizer.prepare_for_write(ProfileIn(displayName="john"), merge_defaults=True)
    # unset fields count as missing, so the default email applies
    assert result == {"displayName": "john", "email": "n/a", "age": 0}


def test_write_rejects_non_mapping(sanitizer):
    with pytest.raises(TypeError):
        sanitizer.prepare_for_write(["displayName"])


# ---------------------------------------------------------------------------
# sanitize_from_read
# ---------------------------------------------------------------------------
def test_read_missing_document_returns_none(sanitizer):
    assert sanitizer.sanitize_from_read(make_snapshot("p1", None, exists=False)) is None


def test_read_without_snapshot_returns_none(sanitizer):
    assert sanitizer.sanitize_from_read(None) is None


def test_read_single_document_drops_stale_fields(sanitizer):
    snap = make_snapshot("p1", {"displayName": "john", "legacyField": True})
    doc = sanitizer.sanitize_from_read(snap, collection_path="profiles")

    assert isinstance(doc, SanitizedDocument)
    assert doc.id == "p1"
    assert doc.path == "profiles/p1"
    assert doc.data == {"displayName": "john"}
    assert doc["displayName"] == "john"
    assert doc.get("email") is None
    assert doc.children == {}


def test_read_query_preserves_order(sanitizer):
    snaps = [
        make_snapshot("b", {"displayName": "Bob"}),
        make_snapshot("a", {"displayName": "Alice"}),
    ]
    docs = sanitizer.sanitize_from_read(snaps)
    assert [d.id for d in docs] == ["b", "a"]


def test_read_empty_query_returns_empty_list(sanitizer):
    assert sanitizer.sanitize_from_read([]) == []


def test_read_attaches_children_from_factory(sanitizer):
    factory = MagicMock(return_value={"groups": "instance"})
    doc = sanitizer.sanitize_from_read(make_snapshot("p1", {}), children_factory=factory)

    factory.assert_called_once_with("p1")
    assert doc.children == {"groups": "instance"}
    assert doc.data == {}
