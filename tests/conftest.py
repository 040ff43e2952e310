import pytest
from unittest.mock import MagicMock

from firestore_submodel_odm import Model, Submodel, init_firestore_models

from fake_firestore import FakeFirestoreClient, FakeStore, make_db


# ---------------------------------------------------------------------------
# Schema used across tests: profiles -> groups -> members
# ---------------------------------------------------------------------------
def declare_profile_models():
    profile = Model(
        name="profiles",
        properties=["displayName", "email"],
        defaults={"email": "n/a"},
    )
    group = Submodel(name="groups", properties=["name", "open"], parent=profile)
    member = Submodel(name="members", properties=["role"], defaults={"role": "viewer"}, parent=group)
    return profile, group, member


@pytest.fixture
def mock_firestore_client():
    return MagicMock()


@pytest.fixture
def mock_db(mock_firestore_client):
    return make_db(mock_firestore_client)


@pytest.fixture
def mocked_models(mock_db):
    """Profile schema wired to MagicMock clients, for call assertions."""
    profile, group, member = declare_profile_models()
    init_firestore_models(mock_db, [profile])
    return profile, group, member


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def fake_db(store):
    client = FakeFirestoreClient(store)
    return make_db(client, listener_client=client)


@pytest.fixture
def models(fake_db):
    """Profile schema wired to the in-memory store."""
    profile, group, member = declare_profile_models()
    init_firestore_models(fake_db, [profile])
    return profile, group, member
