import logging
import httpx
import pytest
from core.drive_folders import FolderResolver
from util.errors import StoreUnavailable


@pytest.fixture
def resolver(http_client, tokens, settings):
    return FolderResolver(http_client, tokens, settings)


async def test_creates_folder_when_missing(resolver, upstreams):
    folder_id = await resolver.resolve_or_create_folder("12345")

    assert upstreams.drive.kinds() == ["list", "create"]
    assert upstreams.drive.folders == [{"id": folder_id, "name": "12345"}]


async def test_resolve_logs_timing_with_folder_name(resolver, caplog):
    with caplog.at_level(logging.INFO, logger="core.drive_folders"):
        await resolver.resolve_or_create_folder("12345")

    assert "drive.folder.resolve.done" in caplog.text
    assert "folder=12345" in caplog.text


async def test_resolve_is_idempotent(resolver, upstreams):
    first = await resolver.resolve_or_create_folder("12345")
    second = await resolver.resolve_or_create_folder("12345")

    assert first == second
    assert upstreams.drive.kinds().count("create") == 1
    assert len(upstreams.drive.folders) == 1


async def test_reuses_existing_folder(resolver, upstreams):
    upstreams.drive.add_folder("999", "f-999")
    upstreams.drive.add_folder("12345", "f-12345")

    assert await resolver.resolve_or_create_folder("12345") == "f-12345"
    assert "create" not in upstreams.drive.kinds()


async def test_name_match_is_exact_and_case_sensitive(resolver, upstreams):
    upstreams.drive.add_folder("bug-abc", "f-lower")
    upstreams.drive.add_folder("bug-abc-old", "f-longer")

    folder_id = await resolver.resolve_or_create_folder("BUG-ABC")

    assert folder_id not in ("f-lower", "f-longer")
    assert ("create", "BUG-ABC") in upstreams.drive.calls


async def test_listing_is_scoped_to_live_folders_under_root(resolver, upstreams, tokens):
    await resolver.resolve_or_create_folder("12345")

    listing = upstreams.drive.requests[0]
    q = listing.url.params["q"]
    assert "mimeType='application/vnd.google-apps.folder'" in q
    assert "'root-drive' in parents" in q
    assert "trashed=false" in q
    assert listing.url.params["driveId"] == "root-drive"
    assert listing.url.params["corpora"] == "drive"
    assert listing.headers["authorization"] == f"Bearer {tokens.token}"


async def test_new_folder_is_parented_on_root(resolver, upstreams):
    await resolver.resolve_or_create_folder("12345")

    create = upstreams.drive.requests[1]
    assert create.method == "POST"
    assert create.url.params["supportsAllDrives"] == "true"
    assert b'"parents":["root-drive"]' in create.content.replace(b" ", b"")


async def test_follows_page_tokens(resolver, upstreams):
    upstreams.drive.forced_page_size = 2
    for i in range(4):
        upstreams.drive.add_folder(f"other-{i}")
    target = upstreams.drive.add_folder("12345")

    assert await resolver.resolve_or_create_folder("12345") == target
    assert upstreams.drive.kinds() == ["list", "list", "list"]


async def test_truncated_listing_warns(http_client, tokens, settings, upstreams, caplog):
    capped = settings.model_copy(update={"FOLDER_LIST_MAX_PAGES": 1})
    resolver = FolderResolver(http_client, tokens, capped)
    upstreams.drive.forced_page_size = 1
    upstreams.drive.add_folder("a")
    upstreams.drive.add_folder("b")

    with caplog.at_level(logging.WARNING, logger="core.drive_folders"):
        await resolver.resolve_or_create_folder("12345")

    assert "drive.folder.list.truncated" in caplog.text
    assert upstreams.drive.kinds() == ["list", "create"]


async def test_list_error_is_store_unavailable(resolver, upstreams):
    upstreams.drive.list_status = 403

    with pytest.raises(StoreUnavailable):
        await resolver.resolve_or_create_folder("12345")
    assert "create" not in upstreams.drive.kinds()


async def test_create_error_is_store_unavailable(resolver, upstreams):
    upstreams.drive.create_status = 500

    with pytest.raises(StoreUnavailable):
        await resolver.resolve_or_create_folder("12345")


async def test_transport_error_is_store_unavailable(tokens, settings):
    def boom(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(boom)) as client:
        resolver = FolderResolver(client, tokens, settings)
        with pytest.raises(StoreUnavailable):
            await resolver.resolve_or_create_folder("12345")


async def test_token_failure_propagates(resolver, tokens, upstreams):
    tokens.error = StoreUnavailable("no token")

    with pytest.raises(StoreUnavailable):
        await resolver.resolve_or_create_folder("12345")
    assert upstreams.drive.calls == []
