"""
Tests for the publish lock and run preemption.
"""

import json
import os
import pytest
from unittest.mock import MagicMock, patch

from doccpages.exit_codes import DeploymentError, PREEMPTED, PreemptedError
from doccpages.infra.publish_lock import PublishLock, pid_alive


def write_holder(lock: PublishLock, run_id: str, pid: int) -> None:
    lock.lock_dir.mkdir(parents=True, exist_ok=True)
    lock.path.write_text(json.dumps({'run_id': run_id, 'pid': pid, 'group': lock.group}))


class TestPidAlive:

    def test_own_process(self):
        assert pid_alive(os.getpid())

    def test_invalid_pid(self):
        assert not pid_alive(0)
        assert not pid_alive(-1)


class TestPublishLock:

    def test_acquire_writes_holder(self, tmp_path):
        lock = PublishLock('pages', tmp_path)

        lock.acquire('run-1')

        holder = json.loads((tmp_path / 'pages.lock').read_text())
        assert holder['run_id'] == 'run-1'
        assert holder['pid'] == os.getpid()
        assert holder['group'] == 'pages'
        assert lock.is_held()

    def test_newer_run_preempts_older(self, tmp_path):
        older = PublishLock('pages', tmp_path)
        newer = PublishLock('pages', tmp_path)

        older.acquire('run-1')
        newer.acquire('run-2')

        assert newer.is_held()
        assert not older.is_held()
        with pytest.raises(PreemptedError) as exc_info:
            older.ensure_held()
        assert exc_info.value.holder == 'run-2'
        assert exc_info.value.exit_code == PREEMPTED

    def test_at_most_one_holder(self, tmp_path):
        locks = [PublishLock('pages', tmp_path) for _ in range(3)]
        for i, lock in enumerate(locks):
            lock.acquire(f'run-{i}')

        assert [lock.is_held() for lock in locks] == [False, False, True]

    def test_groups_are_independent(self, tmp_path):
        pages = PublishLock('pages', tmp_path)
        preview = PublishLock('preview', tmp_path)

        pages.acquire('run-1')
        preview.acquire('run-2')

        assert pages.is_held()
        assert preview.is_held()

    def test_busy_group_without_cancel(self, tmp_path):
        PublishLock('pages', tmp_path).acquire('run-1')
        waiting = PublishLock('pages', tmp_path, cancel_in_progress=False)

        with pytest.raises(DeploymentError):
            waiting.acquire('run-2')

    @patch('doccpages.infra.publish_lock.pid_alive', return_value=True)
    def test_live_holder_is_terminated(self, mock_alive, tmp_path):
        terminate = MagicMock()
        lock = PublishLock('pages', tmp_path, terminate=terminate)
        write_holder(lock, 'run-old', 424242)

        lock.acquire('run-new')

        terminate.assert_called_once_with(424242)
        assert lock.is_held()

    @patch('doccpages.infra.publish_lock.pid_alive', return_value=False)
    def test_stale_lock_taken_over_quietly(self, mock_alive, tmp_path):
        terminate = MagicMock()
        lock = PublishLock('pages', tmp_path, cancel_in_progress=False, terminate=terminate)
        write_holder(lock, 'run-dead', 424242)

        lock.acquire('run-new')

        terminate.assert_not_called()
        assert lock.is_held()

    def test_unreadable_lock_file_is_ignored(self, tmp_path):
        lock = PublishLock('pages', tmp_path)
        tmp_path.mkdir(exist_ok=True)
        lock.path.write_text('{not json')

        assert lock.read() is None
        lock.acquire('run-1')
        assert lock.is_held()

    def test_release_only_when_held(self, tmp_path):
        older = PublishLock('pages', tmp_path)
        newer = PublishLock('pages', tmp_path)
        older.acquire('run-1')
        newer.acquire('run-2')

        older.release()

        assert newer.is_held()
        newer.release()
        assert not (tmp_path / 'pages.lock').exists()

    def test_hold_context_manager_releases(self, tmp_path):
        lock = PublishLock('pages', tmp_path)

        with lock.hold('run-1') as held:
            held.ensure_held()
            assert (tmp_path / 'pages.lock').exists()

        assert not (tmp_path / 'pages.lock').exists()

    def test_bare_context_manager_rejected(self, tmp_path):
        with pytest.raises(RuntimeError):
            with PublishLock('pages', tmp_path):
                pass

    def test_no_temp_files_left(self, tmp_path):
        lock = PublishLock('pages', tmp_path)
        lock.acquire('run-1')
        lock.acquire('run-1')

        assert [p.name for p in tmp_path.iterdir()] == ['pages.lock']

    def test_racing_runs_cannot_both_claim_free_lock(self, tmp_path):
        first = PublishLock('pages', tmp_path)
        second = PublishLock('pages', tmp_path, cancel_in_progress=False)
        first.acquire('run-1')

        # second saw no holder, then lost the create to run-1
        real_read = second.read
        reads = []

        def read_after_first_claimed():
            reads.append(1)
            return None if len(reads) == 1 else real_read()

        with patch.object(second, 'read', side_effect=read_after_first_claimed):
            with pytest.raises(DeploymentError):
                second.acquire('run-2')

        assert first.is_held()

    def test_same_run_nests(self, tmp_path):
        lock = PublishLock('pages', tmp_path)

        with lock.hold('run-1'):
            with lock.hold('run-1'):
                lock.ensure_held()
            assert lock.is_held()

        assert not (tmp_path / 'pages.lock').exists()

    def test_preempted_run_cannot_take_lock_back(self, tmp_path):
        older = PublishLock('pages', tmp_path)
        older.acquire('run-1')
        PublishLock('pages', tmp_path).acquire('run-2')

        with pytest.raises(PreemptedError):
            older.acquire('run-1')

        assert json.loads((tmp_path / 'pages.lock').read_text())['run_id'] == 'run-2'

    def test_from_config(self, tmp_path):
        lock = PublishLock.from_config({
            'group': 'preview', 'lock_dir': str(tmp_path), 'cancel_in_progress': False,
        })

        assert lock.path == tmp_path / 'preview.lock'
        assert lock.cancel_in_progress is False
