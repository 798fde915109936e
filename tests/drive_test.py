import pytest

from examai.errors import DriveError
from examai.services.drive import FOLDER_MIME, public_url
from examai.services.folders import UserFolderService

from conftest import ROOT_FOLDER_ID


@pytest.fixture
def folders(drive, db):
    return UserFolderService(drive, db, ROOT_FOLDER_ID)


def child_names(drive_resource, parent_id):
    return sorted(f["name"] for f in drive_resource.children(parent_id))


async def test_find_or_create_folder_reuses_existing(drive, drive_resource):
    first = await drive.find_or_create_folder(ROOT_FOLDER_ID, "users")
    second = await drive.find_or_create_folder(ROOT_FOLDER_ID, "users")

    assert first == second
    assert drive_resource.store[first]["mimeType"] == FOLDER_MIME
    assert child_names(drive_resource, ROOT_FOLDER_ID) == ["users"]


async def test_folder_names_are_escaped_in_queries(drive, drive_resource):
    await drive.find_or_create_folder(ROOT_FOLDER_ID, "O'Brien")
    query = [q for call, q in drive_resource.calls if call == "list"][0]
    assert "name='O\\'Brien'" in query


async def test_upload_is_shared_by_link(drive, drive_resource):
    uploaded = await drive.upload_bytes(b"hello", "notes.txt", "text/plain", ROOT_FOLDER_ID)

    assert uploaded.url == public_url(uploaded.file_id)
    assert uploaded.url == f"https://drive.google.com/uc?export=view&id={uploaded.file_id}"
    assert drive_resource.store[uploaded.file_id]["content"] == b"hello"
    assert drive_resource.granted == [(uploaded.file_id, {"role": "reader", "type": "anyone"})]


async def test_upload_failure_raises_drive_error(drive, drive_resource):
    drive_resource.fail_uploads = True
    with pytest.raises(DriveError):
        await drive.upload_bytes(b"x", "x.txt", "text/plain", ROOT_FOLDER_ID)


async def test_download_and_update_round_trip(drive):
    uploaded = await drive.upload_bytes(b"v1", "doc.json", "application/json", ROOT_FOLDER_ID)
    await drive.update_bytes(uploaded.file_id, b"v2", "application/json")
    assert await drive.download_bytes(uploaded.file_id) == b"v2"


async def test_clear_folder_removes_only_direct_children(drive, drive_resource):
    folder = await drive.find_or_create_folder(ROOT_FOLDER_ID, "profile")
    await drive.upload_bytes(b"1", "a.png", "image/png", folder)
    await drive.upload_bytes(b"2", "b.png", "image/png", folder)
    other = await drive.upload_bytes(b"3", "c.png", "image/png", ROOT_FOLDER_ID)

    assert await drive.clear_folder(folder) == 2
    assert drive_resource.children(folder) == []
    assert other.file_id in drive_resource.store


async def test_ensure_structure_builds_the_user_tree(folders, drive_resource, db):
    result = await folders.ensure_structure("alice")

    assert child_names(drive_resource, result.users) == ["alice"]
    assert child_names(drive_resource, result.user) == ["ai-sessions", "background", "history", "profile", "uploads"]
    assert child_names(drive_resource, result.history) == ["mentor", "study"]

    user = await db.users.find_one({"uid": "alice"})
    assert user["driveRootId"] == result.user
    assert user["driveMainFolder"] == ROOT_FOLDER_ID
    assert user["driveHistoryFolder"] == result.history
    assert user["driveAISessionsFolder"] == result.ai_sessions


async def test_ensure_structure_is_idempotent(folders, drive_resource):
    first = await folders.ensure_structure("bob")
    count = len(drive_resource.store)
    second = await folders.ensure_structure("bob")

    assert first == second
    assert len(drive_resource.store) == count


async def test_inaccessible_root_folder(folders, drive_resource):
    drive_resource.unreadable.add(ROOT_FOLDER_ID)
    with pytest.raises(DriveError, match="root folder"):
        await folders.ensure_structure("alice")


async def test_ensure_best_effort_swallows_drive_errors(folders, drive_resource):
    drive_resource.fail_folders = True
    assert await folders.ensure_best_effort("carol") is None


async def test_get_structure_uses_saved_ids(folders, drive_resource):
    created = await folders.ensure_structure("dave")
    list_calls = len(drive_resource.calls)

    assert await folders.get_structure("dave") == created
    assert len(drive_resource.calls) == list_calls


async def test_history_subfolder_falls_back_to_history(folders, drive_resource):
    created = await folders.ensure_structure("erin")
    drive_resource.fail_folders = True

    assert await folders.history_subfolder("erin", "exam") == created.history
