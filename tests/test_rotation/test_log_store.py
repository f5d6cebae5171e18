from __future__ import annotations

import json

import pytest

from dutybot.core.errors import RotationLogError
from dutybot.rotation.log_store import RotationLogStore
from dutybot.rotation.models import Member, RotationLog, ServedSet

from conftest import GROUP_ID


def test_load_creates_and_persists_empty_log(store: RotationLogStore) -> None:
    path = store.path_for(GROUP_ID)
    assert not path.exists()
    log = store.load(GROUP_ID)
    assert log == RotationLog()
    assert json.loads(path.read_text(encoding="utf-8")) == {"ignored": [], "served": []}


def test_save_then_load_roundtrip(store: RotationLogStore, alice, bob, carol) -> None:
    log = RotationLog(served=ServedSet([carol, alice]), ignored={bob, Member(number="+4900")})
    store.save(GROUP_ID, log)
    assert store.load(GROUP_ID) == log


def test_logs_are_keyed_by_group(store: RotationLogStore, alice) -> None:
    store.save(GROUP_ID, RotationLog(served=ServedSet([alice])))
    assert store.load("b3RoZXI=") == RotationLog()
    assert store.load(GROUP_ID).served == [alice]


def test_path_is_filesystem_safe(store: RotationLogStore) -> None:
    path = store.path_for("ab+c/d==")
    assert path.name == "round-robin-ab-c_d==.json"
    assert path.parent == store.directory


def test_save_leaves_no_temporary_files(store: RotationLogStore, alice) -> None:
    store.save(GROUP_ID, RotationLog(served=ServedSet([alice])))
    store.save(GROUP_ID, RotationLog())
    names = [p.name for p in store.directory.iterdir()]
    assert names == [store.path_for(GROUP_ID).name]


def test_load_reads_legacy_file(store: RotationLogStore, alice) -> None:
    store.path_for(GROUP_ID).write_text(
        json.dumps(
            {
                "ignoredMembers": [],
                "servedMembers": [{"number": alice.number, "uuid": alice.uuid}],
            }
        ),
        encoding="utf-8",
    )
    assert store.load(GROUP_ID).served == [alice]


@pytest.mark.parametrize("content", ["{not json", "[]", '{"served": [{"number": null}]}'])
def test_load_rejects_broken_files(store: RotationLogStore, content: str) -> None:
    store.path_for(GROUP_ID).write_text(content, encoding="utf-8")
    with pytest.raises(RotationLogError):
        store.load(GROUP_ID)


def test_save_failure_raises_log_error(store: RotationLogStore, tmp_path) -> None:
    store.directory = tmp_path / "missing"
    with pytest.raises(RotationLogError):
        store.save(GROUP_ID, RotationLog())


def test_unusable_directory_raises_log_error(tmp_path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    with pytest.raises(RotationLogError, match="Cannot create log directory"):
        RotationLogStore(blocker / "rotation")
