import os
from datetime import datetime, timezone

import pytest

from page_tracker.exceptions import ConfigError, OutputError
from page_tracker.types import ExportBatch, KeyRecord
from page_tracker.writer import DEFAULT_OUTPUT_FORMAT, build_output_path, render_csv, write_batch

NOW = datetime(2024, 5, 1, 12, 30, 5, 123456, tzinfo=timezone.utc)


def make_batch(*pairs):
    return ExportBatch([KeyRecord(key, value) for key, value in pairs])


def test_render_csv_quotes_special_keys():
    batch = make_batch(("/plain", 1), ("/a,b", 2), ('/say "hi"', 3), ("/multi\nline", 4))
    assert render_csv(batch) == (
        "key,value\n"
        "/plain,1\n"
        '"/a,b",2\n'
        '"/say ""hi""",3\n'
        '"/multi\nline",4\n'
    )


def test_default_file_name_is_utc_timestamp():
    path = build_output_path("exports", NOW)
    assert path.name == "2024-05-01T123005.123456Z.csv"
    assert path.parent.name == "exports"


def test_default_file_names_sort_by_run_time():
    earlier = datetime(2024, 5, 1, 9, 59, 59, 999999, tzinfo=timezone.utc)
    later = datetime(2024, 5, 1, 10, 0, 0, 0, tzinfo=timezone.utc)
    names = [build_output_path(".", t, DEFAULT_OUTPUT_FORMAT).name for t in (later, earlier)]
    assert sorted(names) == list(reversed(names))


def test_custom_output_format():
    assert build_output_path("out", NOW, "views-%Y%m%d.csv").name == "views-20240501.csv"


@pytest.mark.parametrize("fmt", ["", "sub/%Y.csv", ".."])
def test_output_format_must_be_a_file_name(fmt):
    with pytest.raises(ConfigError):
        build_output_path("out", NOW, fmt)


def test_write_batch_creates_directory(tmp_path):
    out_dir = tmp_path / "nested" / "exports"
    result = write_batch(make_batch(("/a", 10), ("/b", 3)), out_dir, now=NOW)

    assert result.output_path == out_dir / "2024-05-01T123005.123456Z.csv"
    assert result.row_count == 2
    assert result.generated_at == NOW
    assert result.output_path.read_text(encoding="utf-8") == "key,value\n/a,10\n/b,3\n"
    assert os.listdir(out_dir) == [result.output_path.name]


def test_write_batch_timestamp_defaults_to_utc_now(tmp_path):
    before = datetime.now(timezone.utc)
    result = write_batch(make_batch(), tmp_path)
    after = datetime.now(timezone.utc)

    assert before <= result.generated_at <= after
    assert result.generated_at.tzinfo is not None


def test_write_batch_never_overwrites_in_directory_mode(tmp_path):
    existing = build_output_path(tmp_path, NOW)
    existing.write_text("previous run")

    with pytest.raises(OutputError, match="Refusing to overwrite"):
        write_batch(make_batch(("/a", 1)), tmp_path, now=NOW)
    assert existing.read_text() == "previous run"


def test_write_batch_explicit_output_replaces_file(tmp_path):
    target = tmp_path / "views.csv"
    target.write_text("stale")

    result = write_batch(make_batch(("/a", 1)), output=target, now=NOW)

    assert result.output_path == target
    assert target.read_text() == "key,value\n/a,1\n"


def test_write_batch_failure_leaves_no_files(tmp_path, monkeypatch):
    def broken_link(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("page_tracker.writer.os.link", broken_link)

    with pytest.raises(OutputError, match="disk full"):
        write_batch(make_batch(("/a", 1)), tmp_path, now=NOW)
    assert list(tmp_path.iterdir()) == []


def test_write_batch_explicit_output_failure_keeps_previous_file(tmp_path, monkeypatch):
    target = tmp_path / "views.csv"
    target.write_text("previous")

    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("page_tracker.writer.os.replace", broken_replace)

    with pytest.raises(OutputError, match="disk full"):
        write_batch(make_batch(("/a", 1)), output=target, now=NOW)
    assert target.read_text() == "previous"
    assert list(tmp_path.iterdir()) == [target]


def test_write_batch_does_not_clobber_file_created_during_write(tmp_path, monkeypatch):
    target = build_output_path(tmp_path, NOW)
    real_render = render_csv

    def render_while_another_run_finishes(batch):
        target.write_text("other run")
        return real_render(batch)

    monkeypatch.setattr("page_tracker.writer.render_csv", render_while_another_run_finishes)

    with pytest.raises(OutputError, match="Refusing to overwrite"):
        write_batch(make_batch(("/a", 1)), tmp_path, now=NOW)
    assert target.read_text() == "other run"
    assert list(tmp_path.iterdir()) == [target]


def test_write_batch_requires_exactly_one_target(tmp_path):
    with pytest.raises(ConfigError):
        write_batch(make_batch())
    with pytest.raises(ConfigError):
        write_batch(make_batch(), tmp_path, output=tmp_path / "x.csv")


def test_write_batch_output_dir_is_a_file(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")

    with pytest.raises(OutputError):
        write_batch(make_batch(), blocker, now=NOW)


def test_write_batch_reports_skipped_keys(tmp_path):
    batch = make_batch(("/a", 1))
    batch.skipped.append("/gone")

    result = write_batch(batch, tmp_path, now=NOW)
    assert result.skipped == ("/gone",)
