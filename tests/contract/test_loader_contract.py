import hashlib
import os
import sys

import pytest

from mldata import (
    ConfigError,
    FetchError,
    IntegrityError,
    LoaderConfig,
    NotCachedError,
    ParseError,
    SampleIndexError,
    load_dataset,
    load_info,
    register_dataset,
)
from mldata.core.types import CLASSIFICATION, Column
from mldata.data.cache import MANIFEST_NAME
from mldata.data.parsers import parse_delimited
from mldata.data.registry import DatasetDescriptor, FileEntry, TargetSpec


def _register(flowers, **kwargs):
    descriptor = flowers.descriptor(**kwargs)
    register_dataset(descriptor, parse_delimited(","))
    return descriptor


def _loader(tmp_path, **options):
    return LoaderConfig("fixture_flowers", cache_dir=tmp_path, **options).create()


def test_first_load_downloads_second_load_is_offline(tmp_path, flowers, fake_http):
    _register(flowers, checksum=flowers.sha256)
    fake_http.serve(flowers.url, flowers.csv)

    first = _loader(tmp_path).load_data()
    assert fake_http.count(flowers.url) == 1

    fake_http.fail(flowers.url, AssertionError("network must not be used"))
    second = _loader(tmp_path).load_data()
    assert fake_http.count(flowers.url) == 1
    assert [s.features for s in first] == [s.features for s in second]


def test_cache_layout_is_name_then_filename(tmp_path, flowers, fake_http):
    _register(flowers)
    fake_http.serve(flowers.url, flowers.csv)
    loader = _loader(tmp_path)
    loader.load_data()

    expected = tmp_path / "fixture_flowers" / "flowers.csv"
    assert loader.directory == tmp_path / "fixture_flowers"
    assert loader.local_paths() == [expected]
    assert expected.read_bytes() == flowers.csv
    assert sorted(p.name for p in loader.directory.iterdir()) == [MANIFEST_NAME, "flowers.csv"]


def test_samples_follow_source_order(tmp_path, flowers, fake_http):
    _register(flowers)
    fake_http.serve(flowers.url, flowers.csv)
    dataset = _loader(tmp_path).load_data()

    assert dataset.n_samples() == len(flowers.rows)
    levels = dataset.categories("colour")
    for index, (features, colour) in enumerate(flowers.rows):
        sample = dataset.get_sample(index)
        assert sample.features == features
        assert levels[sample.target] == colour
    with pytest.raises(SampleIndexError):
        dataset.get_sample(dataset.n_samples())


def test_tampered_download_is_never_cached(tmp_path, flowers, fake_http):
    _register(flowers, checksum=flowers.sha256)
    fake_http.serve(flowers.url, flowers.csv.replace(b"red", b"tan"))

    with pytest.raises(IntegrityError):
        _loader(tmp_path).load_data()
    directory = tmp_path / "fixture_flowers"
    assert not (directory / "flowers.csv").exists()
    assert not [p for p in directory.iterdir() if p.name.endswith(".part")]


def test_interrupted_download_leaves_no_target(tmp_path, flowers, fake_http):
    _register(flowers)
    fake_http.serve(flowers.url, flowers.csv[:10], length=len(flowers.csv))

    with pytest.raises(FetchError):
        _loader(tmp_path).load_data()
    directory = tmp_path / "fixture_flowers"
    assert list(directory.iterdir()) == []

    fake_http.serve(flowers.url, flowers.csv)
    assert _loader(tmp_path).load_data().n_samples() == 4


def test_offline_without_cache(tmp_path, flowers, fake_http):
    _register(flowers)
    fake_http.serve(flowers.url, flowers.csv)

    with pytest.raises(NotCachedError):
        _loader(tmp_path, download=False).load_data()
    config = LoaderConfig("fixture_flowers").with_cache_dir(tmp_path).with_download(False)
    with pytest.raises(NotCachedError):
        config.create().load_info()
    assert fake_http.calls == []


def test_offline_from_environment(tmp_path, flowers, fake_http, monkeypatch):
    _register(flowers)
    monkeypatch.setenv("MLDATA_OFFLINE", "1")
    loader = _loader(tmp_path)
    assert loader.download_enabled is False
    with pytest.raises(NotCachedError):
        loader.load_data()
    # An explicit setting wins over the environment.
    fake_http.serve(flowers.url, flowers.csv)
    assert _loader(tmp_path, download=True).load_data().n_samples() == 4


def test_offline_with_corrupted_cache(tmp_path, flowers, fake_http):
    _register(flowers, checksum=flowers.sha256)
    directory = tmp_path / "fixture_flowers"
    directory.mkdir()
    (directory / "flowers.csv").write_bytes(b"1,2,red\n")

    with pytest.raises(IntegrityError):
        _loader(tmp_path, download=False).load_data()
    # Without verification the present file is trusted as-is.
    dataset = _loader(tmp_path, download=False, verify_checksums=False).load_data()
    assert dataset.n_samples() == 1
    assert fake_http.calls == []


def test_malformed_cell_fails_the_whole_load(tmp_path, flowers, fake_http):
    _register(flowers)
    fake_http.serve(flowers.url, b"5.1,3.5,red\n4.9,oops,blue\n")

    with pytest.raises(ParseError) as info:
        _loader(tmp_path).load_data()
    assert info.value.row == 1
    assert info.value.column == "width"


def test_load_info_uses_declared_count_without_parsing(tmp_path, flowers, fake_http):
    _register(flowers, n_samples=999)
    fake_http.serve(flowers.url, b"not,a,number\n")

    info = _loader(tmp_path).load_info()
    assert info.n_samples == 999
    assert info.task == CLASSIFICATION
    assert info.feature_columns == ("length", "width")
    assert info.target_columns == ("colour",)
    assert info.provenance["flowers.csv"]["url"] == flowers.url


def test_load_info_parses_when_count_is_unknown(tmp_path, flowers, fake_http):
    _register(flowers)
    fake_http.serve(flowers.url, flowers.csv)
    assert _loader(tmp_path).load_info().n_samples == 4


def test_info_files_become_documentation(tmp_path, flowers, fake_http):
    _register(flowers, with_notes=True)
    fake_http.serve(flowers.url, flowers.csv)
    fake_http.serve(flowers.notes_url, b"Flowers of three colours.\n")

    loader = _loader(tmp_path)
    info = loader.load_info()
    assert "three colours" in info.documentation
    # Documentation files are fetched but never parsed.
    assert loader.load_data().n_samples() == 4
    assert fake_http.count(flowers.notes_url) == 1


def test_split_selection(tmp_path, flowers, fake_http):
    descriptor = DatasetDescriptor(
        name="split_flowers",
        files=(
            FileEntry("https://example.org/train.csv", "train.csv", split="train"),
            FileEntry("https://example.org/test.csv", "test.csv", split="test"),
        ),
        columns=flowers.descriptor().columns,
        target=TargetSpec(("colour",), CLASSIFICATION),
    )
    register_dataset(descriptor, parse_delimited(","))
    fake_http.serve("https://example.org/train.csv", b"5.1,3.5,red\n4.9,3.0,blue\n")
    fake_http.serve("https://example.org/test.csv", b"6.2,2.9,red\n")

    loader = LoaderConfig("split_flowers", cache_dir=tmp_path).create()
    assert loader.load_data().n_samples() == 3
    test = loader.load_data(split="test")
    assert test.n_samples() == 1
    assert test.info().splits == ("test",)
    assert loader.load_info().splits == ("train", "test")
    with pytest.raises(ConfigError, match="Unknown split"):
        loader.load_data(split="validation")


def test_parser_must_return_loaded_dataset(tmp_path, flowers, fake_http):
    register_dataset(flowers.descriptor(), lambda paths, descriptor: [1, 2, 3])
    fake_http.serve(flowers.url, flowers.csv)
    with pytest.raises(ParseError, match="returned list"):
        _loader(tmp_path).load_data()


def test_shortcuts(tmp_path, flowers, fake_http, isolated_cache):
    _register(flowers)
    fake_http.serve(flowers.url, flowers.csv)

    assert load_dataset("fixture_flowers").n_samples() == 4
    assert (isolated_cache / "fixture_flowers" / "flowers.csv").exists()
    assert load_info("fixture_flowers", download=False).n_samples == 4
    assert fake_http.count(flowers.url) == 1


@pytest.mark.parametrize(
    "options, message",
    [
        ({"timeout": 0}, "positive"),
        ({"timeout": -5}, "positive"),
        ({"timeout": "soon"}, "Invalid timeout"),
        ({"verify_checksums": "yes"}, "verify_checksums"),
        ({"download": 1}, "download"),
    ],
)
def test_invalid_configuration(tmp_path, flowers, options, message):
    _register(flowers)
    with pytest.raises(ConfigError, match=message):
        LoaderConfig("fixture_flowers", cache_dir=tmp_path, **options).create()


def test_unknown_dataset_is_config_error(tmp_path):
    with pytest.raises(ConfigError, match="Unknown dataset"):
        LoaderConfig("no_such_dataset", cache_dir=tmp_path).create()


def test_cache_dir_that_is_a_file(tmp_path, flowers):
    _register(flowers)
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    with pytest.raises(ConfigError, match="Unusable cache directory"):
        LoaderConfig("fixture_flowers", cache_dir=blocker).create()


@pytest.mark.skipif(
    sys.platform.startswith("win") or (hasattr(os, "geteuid") and os.geteuid() == 0),
    reason="permission bits are not enforced",
)
def test_read_only_cache_dir(tmp_path, flowers):
    _register(flowers)
    directory = tmp_path / "fixture_flowers"
    directory.mkdir()
    directory.chmod(0o500)
    try:
        with pytest.raises(ConfigError, match="not writable"):
            LoaderConfig("fixture_flowers", cache_dir=tmp_path).create()
        # Read-only caches are fine when nothing needs to be written.
        LoaderConfig("fixture_flowers", cache_dir=tmp_path, download=False).create()
    finally:
        directory.chmod(0o700)


def test_builder_methods_return_new_configs(tmp_path):
    base = LoaderConfig("uci_iris")
    tuned = base.with_cache_dir(tmp_path).with_checksums(False).with_download(False).with_timeout(5)
    assert base.cache_dir is None
    assert base.verify_checksums is True
    assert tuned.cache_dir == tmp_path
    assert tuned.verify_checksums is False
    assert tuned.download is False
    assert tuned.timeout == 5
    assert tuned.create().directory == tmp_path / "uci_iris"


def test_loader_checksum_uses_declared_algorithm(tmp_path, flowers, fake_http):
    _register(flowers, checksum="md5:" + hashlib.md5(flowers.csv).hexdigest())
    fake_http.serve(flowers.url, flowers.csv)
    assert _loader(tmp_path).load_data().n_samples() == 4


def test_schema_column_order_drives_features(tmp_path, fake_http):
    descriptor = DatasetDescriptor(
        name="reordered",
        files=(FileEntry("https://example.org/r.csv", "r.csv"),),
        columns=(Column("label"), Column("a"), Column("b")),
        target=TargetSpec(("label",), "regression"),
    )
    register_dataset(descriptor, parse_delimited(","))
    fake_http.serve("https://example.org/r.csv", b"1,2,3\n")
    sample = LoaderConfig("reordered", cache_dir=tmp_path).create().load_data()[0]
    assert sample.features == (2.0, 3.0)
    assert sample.target == 1.0
