"""
Fixtures for the emulator-backed integration tests.

They run only when ``FIRESTORE_EMULATOR_HOST`` points at a running Firestore
emulator (``FIRESTORE_EMULATOR_HOST=localhost:8080``); otherwise every test in
this directory is skipped.
"""

import os

import httpx
import pytest
import pytest_asyncio

from firestore_submodel_odm import FirestoreDB, Model, Submodel, init_firestore_models

EMULATOR_HOST = os.environ.get("FIRESTORE_EMULATOR_HOST", "").strip()
PROJECT_ID = os.environ.get("GOOGLE_CLOUD_PROJECT") or "test-project"
DATABASE = os.environ.get("DATABASE", None) or None

IS_EMULATOR = bool(EMULATOR_HOST)


def pytest_collection_modifyitems(config, items):
    if IS_EMULATOR:
        return
    skip = pytest.mark.skip(reason="FIRESTORE_EMULATOR_HOST is not set")
    here = os.path.dirname(__file__)
    for item in items:
        if str(item.fspath).startswith(here):
            item.add_marker(skip)


@pytest.fixture()
def firestore_db():
    """Function-scoped so each test gets an AsyncClient on its own event loop."""
    return FirestoreDB(project_id=PROJECT_ID, database=DATABASE, emulator_host=EMULATOR_HOST)


@pytest.fixture()
def raw_client(firestore_db):
    return firestore_db.client


async def _wipe_emulator():
    db_name = DATABASE or "(default)"
    url = (
        f"http://{EMULATOR_HOST}/emulator/v1/projects/"
        f"{PROJECT_ID}/databases/{db_name}/documents"
    )
    async with httpx.AsyncClient() as client:
        await client.delete(url)


@pytest_asyncio.fixture(autouse=True)
async def clean_firestore():
    """Wipe all data before and after each test."""
    await _wipe_emulator()
    yield
    await _wipe_emulator()


@pytest_asyncio.fixture
async def collections(firestore_db):
    profile = Model(
        name="profiles",
        properties=["displayName", "email", "age"],
        defaults={"email": "n/a"},
    )
    group = Submodel(name="groups", properties=["name"], parent=profile)
    init_firestore_models(firestore_db, [profile])
    yield profile, group
    profile.remove_all_listeners()
    group.remove_all_listeners()
