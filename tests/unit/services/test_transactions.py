import pytest

from salesdash.services.transactions import unit_of_work


class RecordingStore:
    def __init__(self, fail_commit=False):
        self.calls = []
        self.fail_commit = fail_commit

    async def commit(self):
        self.calls.append("commit")
        if self.fail_commit:
            raise RuntimeError("commit failed")

    async def rollback(self):
        self.calls.append("rollback")


@pytest.mark.asyncio
async def test_commits_on_success():
    store = RecordingStore()
    async with unit_of_work(store):
        pass
    assert store.calls == ["commit"]


@pytest.mark.asyncio
async def test_rolls_back_on_error_without_committing():
    store = RecordingStore()
    with pytest.raises(ValueError):
        async with unit_of_work(store):
            raise ValueError("boom")
    assert store.calls == ["rollback"]


@pytest.mark.asyncio
async def test_failed_commit_is_rolled_back():
    store = RecordingStore(fail_commit=True)
    with pytest.raises(RuntimeError):
        async with unit_of_work(store):
            pass
    assert store.calls == ["commit", "rollback"]
