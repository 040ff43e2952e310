from functools import wraps
from firestore_submodel_odm import *
import os
import asyncio
GOOGLE_CLOUD_PROJECT = os.getenv("GOOGLE_CLOUD_PROJECT")
DATABASE = os.getenv("DATABASE")


def async_decorator(f):
    """Decorator to allow calling an async function like a sync function"""
    @wraps(f)
    def wrapper(*args, **kwargs):
        return asyncio.run(f(*args, **kwargs))
    return wrapper


# 1. Declare the collections: profiles/{id}/groups/{id}
Profile = Model(
    name="profiles",
    properties=["displayName", "email", "age"],
    defaults={"email": "n/a"},
)
Group = Submodel(name="groups", properties=["name", "open"], parent=Profile)


@async_decorator
async def main():
    # 2. Connect (FIRESTORE_EMULATOR_HOST is honoured when set)
    db = FirestoreDB(project_id=GOOGLE_CLOUD_PROJECT, database=DATABASE)
    init_firestore_models(db, [Profile])

    # 3. Write a profile; unknown keys are dropped, defaults filled in
    profile = await Profile.write_to_new_doc(
        {"displayName": "Alice", "age": 31, "password": "dropped"},
        merge_defaults=True,
    )
    print(f"Created {profile.path}")

    # 4. The returned handle exposes its subcollections
    groups = profile.children["groups"]
    await groups.write_to_id("welcome", {"name": "Welcome", "open": True})

    # 5. Path-addressed access through the submodel
    group = await Group.get_by_path(f"{profile.path}/groups/welcome")
    print("Group:", group.data)

    # 6. Queries
    adults = await Profile.get_by_query([field("age") >= 18, order_by("age")])
    print("Adults:", [p.get("displayName") for p in adults])

    # 7. Autobatched writes, committed in chunks of at most 500
    async with Autobatcher() as batcher:
        for i in range(3):
            await groups.write_to_id(f"g{i}", {"name": f"Group {i}"}, autobatcher=batcher)
    print("Batches committed:", batcher.committed_batches)

    # 8. Live data
    live = Profile.live_data_by_id("me", profile.id)
    await live.initial_fetch(timeout=10)
    print("Live value:", live.value.data if live.value else None)
    live.dispose()


if __name__ == "__main__":
    main()
