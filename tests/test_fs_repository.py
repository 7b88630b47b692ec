import pytest
import pytest_asyncio

from ephemeral_share.config import StorageConfig
from ephemeral_share.repositories import STAGING_DIR, FileSystemRepository

pytestmark = pytest.mark.asyncio


@pytest_asyncio.fixture
async def repo(tmp_path):
    repo = FileSystemRepository(StorageConfig(root=tmp_path / "files"))
    await repo.ensure_root()
    return repo


async def test_link_exclusive_refuses_existing_name(repo, tmp_path):
    src = tmp_path / "upload"
    src.write_bytes(b"new")
    repo.path_for("abc.txt").write_bytes(b"old")

    assert await repo.link_exclusive(src, "abc.txt") is False
    assert repo.path_for("abc.txt").read_bytes() == b"old"
    assert await repo.link_exclusive(src, "abd.txt") is True
    assert repo.path_for("abd.txt").read_bytes() == b"new"


async def test_same_device_upload_is_not_copied(repo, tmp_path):
    src = tmp_path / "upload"
    src.write_bytes(b"data")
    assert await repo.stage(src) == src


async def test_cross_device_upload_is_staged(repo, tmp_path, monkeypatch):
    monkeypatch.setattr(FileSystemRepository, "_same_device", staticmethod(lambda a, b: False))
    src = tmp_path / "upload"
    src.write_bytes(b"data")

    staged = await repo.stage(src)

    assert staged != src
    assert staged.parent == tmp_path / "files" / STAGING_DIR
    assert staged.read_bytes() == b"data"


async def test_list_all_is_flat_and_skips_staging(repo, tmp_path):
    await repo.incoming_dir()
    repo.path_for("a.txt").write_bytes(b"a")
    (tmp_path / "files" / "sub").mkdir()
    (tmp_path / "files" / "sub" / "deep.txt").write_bytes(b"d")

    names = sorted(p.name for p in await repo.list_all())

    assert names == ["a.txt", "sub"]


async def test_discard_and_remove_tolerate_missing_files(repo, tmp_path):
    await repo.discard(tmp_path / "never-existed")
    await repo.remove("gone.txt")
