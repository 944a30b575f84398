from __future__ import annotations

import errno

import pytest

from confsync.core.errors import (
    BackendError,
    FilesystemError,
    ReloadError,
    TemplateRenderError,
    TemplateSyntaxError,
    ValidationError,
)
from confsync.core.models import ProcessingState
from confsync.pipeline import TemplateResource, load_resource
from confsync.rendering.io import fingerprint

from .utils import CONFDIR, DictClient, read_text, write_text

DEST = "/srv/app/foo.conf"


def _resource(
    memfs, make_config, client, template='foo = {{ getv("/foo") }}', extra="", **overrides
) -> TemplateResource:
    write_text(memfs, f"{CONFDIR}/templates/foo.tmpl", template)
    write_text(
        memfs,
        f"{CONFDIR}/conf.d/foo.toml",
        f'[template]\nsrc = "foo.tmpl"\ndest = "{DEST}"\nkeys = ["foo"]\n{extra}',
    )
    return load_resource(memfs, f"{CONFDIR}/conf.d/foo.toml", make_config(client, **overrides))


def _files(memfs) -> list[str]:
    return list(memfs.walk_files("/srv/app"))


def test_renders_new_destination(memfs, make_config, client):
    resource = _resource(memfs, make_config, client, prefix="")
    result = resource.process()

    assert read_text(memfs, DEST) == "foo = bar"
    assert result.changed and result.committed
    assert not result.noop and not result.reloaded
    assert result.stage_path is None
    assert _files(memfs) == [DEST]


def test_second_cycle_is_idempotent(memfs, make_config, client):
    resource = _resource(memfs, make_config, client)
    resource.process()
    before = memfs.stat(DEST)

    result = resource.process()
    assert not result.changed and not result.committed
    assert memfs.stat(DEST) == before
    assert read_text(memfs, DEST) == "foo = bar"
    assert _files(memfs) == [DEST]


def test_committed_content_matches_candidate(memfs, make_config, client):
    _resource(memfs, make_config, client).process()
    result = _resource(memfs, make_config, client, keep_stage_file=True).process()

    assert not result.changed
    assert result.stage_path is not None
    assert fingerprint(memfs, result.stage_path) == fingerprint(memfs, DEST)


def test_render_failure_leaves_destination_untouched(memfs, make_config, client):
    write_text(memfs, DEST, "original")
    resource = _resource(memfs, make_config, client, template='x = {{ getv("/missing") }}')

    with pytest.raises(TemplateRenderError):
        resource.process()
    assert read_text(memfs, DEST) == "original"
    assert _files(memfs) == [DEST]


def test_template_runtime_error_removes_staged_file(memfs, make_config, client):
    write_text(memfs, DEST, "original")
    resource = _resource(memfs, make_config, client, template="x = {{ 1 / 0 }}")

    with pytest.raises(TemplateRenderError):
        resource.process()
    assert read_text(memfs, DEST) == "original"
    assert _files(memfs) == [DEST]


def test_sync_and_commit_require_a_staged_file(memfs, make_config, client):
    resource = _resource(memfs, make_config, client)
    state = ProcessingState(file_mode=0o644)

    with pytest.raises(RuntimeError):
        resource.sync(state)
    with pytest.raises(RuntimeError):
        resource.commit(state)
    assert _files(memfs) == []


def test_template_syntax_error(memfs, make_config, client):
    resource = _resource(memfs, make_config, client, template="x = {{ getv( }}")
    with pytest.raises(TemplateSyntaxError):
        resource.process()
    assert _files(memfs) == []


def test_missing_template(memfs, make_config, client):
    resource = _resource(memfs, make_config, client)
    memfs.remove(f"{CONFDIR}/templates/foo.tmpl")
    with pytest.raises(FilesystemError):
        resource.process()


def test_rename_failure_leaves_destination_untouched(memfs, make_config, client):
    write_text(memfs, DEST, "original")
    memfs.inject_fault("rename", DEST, errno.EIO)
    resource = _resource(memfs, make_config, client)

    with pytest.raises(FilesystemError):
        resource.process()
    assert read_text(memfs, DEST) == "original"
    assert _files(memfs) == [DEST]


def test_stage_chown_failure_removes_staged_file(memfs, make_config, client):
    resource = _resource(memfs, make_config, client)

    original_chown = memfs.chown

    def failing_chown(path, uid, gid):
        if path != DEST:
            raise PermissionError(errno.EPERM, "Operation not permitted", path)
        original_chown(path, uid, gid)

    memfs.chown = failing_chown
    with pytest.raises(FilesystemError):
        resource.process()
    assert _files(memfs) == []


def test_backend_failure_aborts_cycle(memfs, make_config, client):
    write_text(memfs, DEST, "original")
    client.error = BackendError("store unreachable")
    resource = _resource(memfs, make_config, client)

    with pytest.raises(BackendError):
        resource.process()
    assert read_text(memfs, DEST) == "original"
    assert _files(memfs) == [DEST]


def test_unwritable_staging_directory(memfs, make_config, client):
    resource = _resource(memfs, make_config, client)
    memfs.inject_fault("create_temp", "/srv/app", errno.EACCES)
    with pytest.raises(FilesystemError):
        resource.process()


def test_noop_reports_change_without_committing(memfs, make_config, client):
    write_text(memfs, DEST, "foo = old")
    resource = _resource(memfs, make_config, client, noop=True)

    result = resource.process()
    assert result.noop
    assert result.changed
    assert not result.committed
    assert read_text(memfs, DEST) == "foo = old"
    assert _files(memfs) == [DEST]


def test_noop_with_unchanged_content(memfs, make_config, client):
    write_text(memfs, DEST, "foo = bar")
    result = _resource(memfs, make_config, client, noop=True).process()
    assert result.noop and not result.changed


def test_failing_check_blocks_commit(memfs, make_config, client):
    write_text(memfs, DEST, "foo = old")
    resource = _resource(
        memfs, make_config, client, extra='check_cmd = "exit 1"\nreload_cmd = "exit 0"\n'
    )

    with pytest.raises(ValidationError):
        resource.process()
    assert read_text(memfs, DEST) == "foo = old"
    assert _files(memfs) == [DEST]


def test_failing_check_keeps_staged_file_when_asked(memfs, make_config, client):
    resource = _resource(
        memfs, make_config, client, extra='check_cmd = "exit 1"\n', keep_stage_file=True
    )
    with pytest.raises(ValidationError):
        resource.process()
    staged = _files(memfs)
    assert len(staged) == 1
    assert staged[0].startswith("/srv/app/.foo.conf")


def test_check_is_skipped_when_unchanged(memfs, make_config, client):
    write_text(memfs, DEST, "foo = bar")
    result = _resource(memfs, make_config, client, extra='check_cmd = "exit 1"\n').process()
    assert not result.changed


def test_sync_only_skips_check_and_reload(memfs, make_config, client):
    resource = _resource(
        memfs,
        make_config,
        client,
        extra='check_cmd = "exit 1"\nreload_cmd = "exit 1"\n',
        sync_only=True,
    )
    result = resource.process()
    assert result.committed and not result.reloaded
    assert read_text(memfs, DEST) == "foo = bar"


def test_reload_runs_after_commit(memfs, make_config, client):
    result = _resource(memfs, make_config, client, extra='reload_cmd = "true"\n').process()
    assert result.committed and result.reloaded


def test_reload_failure_keeps_commit(memfs, make_config, client):
    resource = _resource(memfs, make_config, client, extra='reload_cmd = "exit 3"\n')
    with pytest.raises(ReloadError) as excinfo:
        resource.process()
    assert excinfo.value.result.committed
    assert not excinfo.value.result.reloaded
    assert read_text(memfs, DEST) == "foo = bar"


def test_mode_inherited_from_destination(memfs, make_config, client):
    write_text(memfs, DEST, "foo = old", mode=0o640)
    resource = _resource(memfs, make_config, client)
    assert resource.resolve_mode() == 0o640

    resource.process()
    assert memfs.stat(DEST).mode == 0o640


def test_mode_defaults_for_new_destination(memfs, make_config, client):
    resource = _resource(memfs, make_config, client)
    assert resource.resolve_mode() == 0o644
    resource.process()
    assert memfs.stat(DEST).mode == 0o644


def test_explicit_mode_and_ownership(memfs, make_config, client):
    write_text(memfs, DEST, "foo = old", mode=0o644)
    resource = _resource(memfs, make_config, client, extra='mode = "0600"\nuid = 7\ngid = 8\n')
    resource.process()

    st = memfs.stat(DEST)
    assert st.mode == 0o600
    assert (st.uid, st.gid) == (7, 8)


def test_ownership_drift_is_not_a_change(memfs, make_config, client):
    write_text(memfs, DEST, "foo = bar")
    memfs.chown(DEST, 0, 0)
    result = _resource(memfs, make_config, client).process()
    assert not result.changed
    assert memfs.stat(DEST).uid == 0


def test_busy_destination_is_overwritten_in_place(memfs, make_config, client):
    write_text(memfs, DEST, "foo = old", mode=0o640)
    memfs.mark_busy(DEST)
    resource = _resource(memfs, make_config, client, extra="uid = 7\ngid = 8\n")

    result = resource.process()
    assert result.committed
    st = memfs.stat(DEST)
    assert read_text(memfs, DEST) == "foo = bar"
    assert st.mode == 0o640
    assert (st.uid, st.gid) == (7, 8)
    assert _files(memfs) == [DEST]


def test_prefixed_keys_in_template(memfs, make_config):
    client = DictClient({"/app/foo": "prefixed", "/app/db/host": "db1"})
    resource = _resource(
        memfs,
        make_config,
        client,
        template='{{ getv("/foo") }} {{ getv("/db/host", "none") }} {{ exists("/app/foo") }}',
        extra='prefix = "/app/"\n',
    )
    resource.process()
    assert read_text(memfs, DEST) == "prefixed none False"
