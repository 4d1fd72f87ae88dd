"""Tests for token based resource access."""

import asyncio

import jwt
import pytest

from docsearch.core.exceptions import ResourceAccessDeniedError
from docsearch.infrastructure.access.token_access_manager import TokenAccessManager

from .utils import TEST_SECRET


@pytest.fixture
def manager() -> TokenAccessManager:
    return TokenAccessManager(TEST_SECRET)


@pytest.fixture
def sample(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hello", encoding="utf-8")
    return path


def test_empty_secret_rejected():
    with pytest.raises(ValueError):
        TokenAccessManager("")


def test_grant_and_resolve(manager, sample):
    token = manager.grant_access(str(sample))

    assert manager.resolve(token, str(sample)) == sample.resolve()


def test_file_url_locator(manager, sample):
    token = manager.grant_access(f"file://{sample}")

    assert manager.resolve(token, str(sample)) == sample.resolve()


def test_token_survives_new_manager_with_same_secret(manager, sample):
    token = manager.grant_access(str(sample))

    assert TokenAccessManager(TEST_SECRET).resolve(token, str(sample)) == sample.resolve()


def test_missing_file_denied(manager, tmp_path):
    with pytest.raises(ResourceAccessDeniedError):
        manager.grant_access(str(tmp_path / "absent.txt"))


def test_directory_denied(manager, tmp_path):
    with pytest.raises(ResourceAccessDeniedError):
        manager.grant_access(str(tmp_path))


def test_outside_allowed_roots_denied(tmp_path, sample):
    other = tmp_path / "allowed"
    other.mkdir()
    manager = TokenAccessManager(TEST_SECRET, allowed_roots=[str(other)])

    with pytest.raises(ResourceAccessDeniedError):
        manager.grant_access(str(sample))

    inside = other / "ok.txt"
    inside.write_text("fine", encoding="utf-8")
    assert manager.grant_access(str(inside))


def test_garbage_token_denied(manager, sample):
    with pytest.raises(ResourceAccessDeniedError):
        manager.resolve("not-a-token", str(sample))


def test_token_signed_with_other_secret_denied(manager, sample):
    foreign = TokenAccessManager("another-secret-for-docsearch-tokens-9876543210")
    token = foreign.grant_access(str(sample))

    with pytest.raises(ResourceAccessDeniedError):
        manager.resolve(token, str(sample))


def test_token_for_other_locator_denied(manager, sample, tmp_path):
    other = tmp_path / "other.txt"
    other.write_text("x", encoding="utf-8")
    token = manager.grant_access(str(sample))

    with pytest.raises(ResourceAccessDeniedError):
        manager.resolve(token, str(other))


def test_token_is_stale_after_file_removed(manager, sample):
    token = manager.grant_access(str(sample))
    sample.unlink()

    with pytest.raises(ResourceAccessDeniedError):
        manager.resolve(token, str(sample))


def test_token_is_stale_after_file_replaced(manager, sample, tmp_path):
    token = manager.grant_access(str(sample))
    replacement = tmp_path / "replacement.txt"
    replacement.write_text("new", encoding="utf-8")
    # original stays on disk so its inode cannot be reused
    keep = tmp_path / "keep.txt"
    sample.rename(keep)
    replacement.rename(sample)

    with pytest.raises(ResourceAccessDeniedError):
        manager.resolve(token, str(sample))


def test_token_claims(manager, sample):
    token = manager.grant_access(str(sample))
    claims = jwt.decode(token, TEST_SECRET, algorithms=["HS256"])

    assert claims["path"] == str(sample.resolve())
    assert claims["ino"] == sample.stat().st_ino


@pytest.mark.asyncio
async def test_with_access_releases_after_success(manager, sample):
    token = manager.grant_access(str(sample))
    seen = []

    async def read(path):
        seen.append(manager.active_count(str(sample)))
        return path.read_text(encoding="utf-8")

    assert await manager.with_access(token, str(sample), read) == "hello"
    assert seen == [1]
    assert manager.active_count(str(sample)) == 0


@pytest.mark.asyncio
async def test_with_access_releases_after_error(manager, sample):
    token = manager.grant_access(str(sample))

    async def broken(path):
        raise RuntimeError("read failed")

    with pytest.raises(RuntimeError):
        await manager.with_access(token, str(sample), broken)
    assert manager.active_count(str(sample)) == 0


@pytest.mark.asyncio
async def test_with_access_releases_after_cancellation(manager, sample):
    token = manager.grant_access(str(sample))
    started = asyncio.Event()

    async def slow(path):
        started.set()
        await asyncio.sleep(10)

    task = asyncio.create_task(manager.with_access(token, str(sample), slow))
    await started.wait()
    assert manager.active_count(str(sample)) == 1

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert manager.active_count(str(sample)) == 0


@pytest.mark.asyncio
async def test_nested_access_is_counted(manager, sample):
    token = manager.grant_access(str(sample))

    async with manager.access(token, str(sample)):
        async with manager.access(token, str(sample)):
            assert manager.active_count(str(sample)) == 2
        assert manager.active_count(str(sample)) == 1
    assert manager.active_count(str(sample)) == 0
