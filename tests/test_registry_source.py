"""Tests for the sparse index client and the registry source."""
import hashlib
import io
import json
import tarfile
from unittest.mock import patch, MagicMock

import pytest
import semantic_version

from errors import RegistryError, SourceError
from registry.crates.index import (
    IndexClient,
    download_url,
    index_prefix,
    normalize_index_url,
    unpack_crate,
)
from sources import RegistrySource, SourceLocation
from sources.registry import registry_ident
from versioning import PackageSummary, build_requirement

INDEX = "sparse+https://index.example.com/"
CONFIG = {"dl": "https://static.example.com/crates"}


def _crate_bytes(name, version, files=None, extra_members=()):
    files = files or {"Cargo.toml": f'[package]\nname = "{name}"\nversion = "{version}"\n',
                      "src/lib.rs": "// lib\n"}
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for rel, text in files.items():
            data = text.encode()
            info = tarfile.TarInfo(f"{name}-{version}/{rel}")
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
        for info in extra_members:
            tar.addfile(info, io.BytesIO(b""))
    return buf.getvalue()


def _index_response(*records, status=200):
    res = MagicMock()
    res.status_code = status
    res.text = "\n".join(json.dumps(r) for r in records)
    return res


def _record(version, cksum="0" * 64, yanked=False, name="demo"):
    return {"name": name, "vers": version, "deps": [], "cksum": cksum, "features": {},
            "yanked": yanked}


class TestIndexHelpers:
    """Test index path and URL helpers."""

    @pytest.mark.parametrize("name,expected", [
        ("a", "1"),
        ("ab", "2"),
        ("abc", "3/a"),
        ("serde", "se/rd"),
        ("Serde_JSON", "se/rd"),
    ])
    def test_index_prefix(self, name, expected):
        assert index_prefix(name) == expected

    def test_normalize_strips_sparse_marker(self):
        assert normalize_index_url("sparse+https://index.crates.io") == "https://index.crates.io/"

    @pytest.mark.parametrize("url", [
        "https://github.com/rust-lang/crates.io-index.git",
        "git+https://example.com/index",
        "file:///srv/index",
    ])
    def test_normalize_rejects_non_sparse(self, url):
        with pytest.raises(SourceError):
            normalize_index_url(url)

    def test_download_url_without_markers(self):
        url = download_url("https://static.example.com/crates/", "demo", "1.0.0")
        assert url == "https://static.example.com/crates/demo/1.0.0/download"

    def test_download_url_with_markers(self):
        url = download_url(
            "https://dl.example.com/{prefix}/{crate}/{crate}-{version}.crate?sum={sha256-checksum}",
            "serde", "1.0.0", "abc",
        )
        assert url == "https://dl.example.com/se/rd/serde/serde-1.0.0.crate?sum=abc"

    def test_registry_ident_is_stable(self):
        assert registry_ident(INDEX) == registry_ident("https://index.example.com")
        assert registry_ident(INDEX).startswith("index.example.com-")


class TestIndexClient:
    """Test IndexClient HTTP interactions."""

    @patch('registry.crates.index.crates_pkg.safe_get')
    def test_entries_requests_prefix_path(self, mock_safe_get):
        mock_safe_get.return_value = _index_response(_record("1.0.0"), _record("1.1.0"))

        entries = IndexClient(INDEX).entries("Demo")

        assert [e["vers"] for e in entries] == ["1.0.0", "1.1.0"]
        assert mock_safe_get.call_args.args[0] == "https://index.example.com/de/mo/demo"

    @patch('registry.crates.index.crates_pkg.safe_get')
    def test_unknown_crate_returns_empty(self, mock_safe_get):
        mock_safe_get.return_value = _index_response(status=404)
        assert IndexClient(INDEX).entries("missing") == []

    @patch('registry.crates.index.crates_pkg.safe_get')
    def test_server_error_raises(self, mock_safe_get):
        mock_safe_get.return_value = _index_response(status=503)
        with pytest.raises(RegistryError):
            IndexClient(INDEX).entries("demo")

    @patch('registry.crates.index.crates_pkg.get_json')
    def test_config_requires_dl(self, mock_get_json):
        mock_get_json.return_value = {"api": "https://example.com"}
        with pytest.raises(RegistryError):
            IndexClient(INDEX).config()

    @patch('registry.crates.index.crates_pkg.get_json')
    def test_config_fetched_once(self, mock_get_json):
        mock_get_json.return_value = CONFIG
        client = IndexClient(INDEX)
        client.config()
        client.config()
        mock_get_json.assert_called_once()
        assert mock_get_json.call_args.args[0] == "https://index.example.com/config.json"


class TestUnpackCrate:
    """Test archive extraction safety."""

    def test_extracts_under_expected_root(self, tmp_path):
        archive = tmp_path / "demo-1.0.0.crate"
        archive.write_bytes(_crate_bytes("demo", "1.0.0"))

        root = unpack_crate(archive, tmp_path / "src", "demo-1.0.0")

        assert (root / "Cargo.toml").is_file()
        assert (root / "src" / "lib.rs").read_text() == "// lib\n"

    def test_skips_parent_directory_members(self, tmp_path):
        archive = tmp_path / "demo-1.0.0.crate"
        archive.write_bytes(_crate_bytes("demo", "1.0.0", files={"../evil": "x", "ok.rs": "ok"}))

        root = unpack_crate(archive, tmp_path / "src", "demo-1.0.0")

        assert (root / "ok.rs").is_file()
        assert not (tmp_path / "src" / "evil").exists()

    def test_rejects_absolute_member(self, tmp_path):
        archive = tmp_path / "demo-1.0.0.crate"
        buf = io.BytesIO()
        with tarfile.open(fileobj=buf, mode="w:gz") as tar:
            info = tarfile.TarInfo("/tmp/evil")
            tar.addfile(info, io.BytesIO(b""))
        archive.write_bytes(buf.getvalue())
        with pytest.raises(SourceError):
            unpack_crate(archive, tmp_path / "src", "demo-1.0.0")

    def test_rejects_other_top_level_directory(self, tmp_path):
        archive = tmp_path / "demo-1.0.0.crate"
        archive.write_bytes(_crate_bytes("other", "1.0.0"))
        with pytest.raises(SourceError):
            unpack_crate(archive, tmp_path / "src", "demo-1.0.0")

    def test_skips_links(self, tmp_path):
        link = tarfile.TarInfo("demo-1.0.0/link")
        link.type = tarfile.SYMTYPE
        link.linkname = "/etc/passwd"
        archive = tmp_path / "demo-1.0.0.crate"
        archive.write_bytes(_crate_bytes("demo", "1.0.0", extra_members=[link]))

        root = unpack_crate(archive, tmp_path / "src", "demo-1.0.0")

        assert not (root / "link").exists()
        assert (root / "Cargo.toml").is_file()

    def test_corrupt_archive_raises(self, tmp_path):
        archive = tmp_path / "demo-1.0.0.crate"
        archive.write_bytes(b"not a tarball")
        with pytest.raises(SourceError):
            unpack_crate(archive, tmp_path / "src", "demo-1.0.0")


class TestRegistrySource:
    """Test RegistrySource query and download."""

    def _source(self, tmp_path):
        return RegistrySource(SourceLocation.for_registry("crates-io", INDEX), tmp_path)

    @patch('registry.crates.index.crates_pkg.safe_get')
    def test_query_excludes_yanked_and_non_matching(self, mock_safe_get, tmp_path):
        mock_safe_get.return_value = _index_response(
            _record("1.0.0"),
            _record("1.2.0", yanked=True),
            _record("1.1.0"),
            _record("2.0.0"),
            _record("not-a-version"),
        )

        summaries = self._source(tmp_path).query("demo", build_requirement("1.0.0"))

        assert [str(s.version) for s in summaries] == ["1.0.0", "1.1.0"]
        assert summaries[0].checksum == "0" * 64

    @patch('registry.crates.index.crates_pkg.safe_get')
    def test_query_without_requirement_keeps_prereleases(self, mock_safe_get, tmp_path):
        mock_safe_get.return_value = _index_response(
            _record("1.0.0"),
            _record("2.0.0-beta.1"),
            _record("2.0.0", yanked=True),
        )

        summaries = self._source(tmp_path).query("demo", build_requirement(None))

        assert [str(s.version) for s in summaries] == ["1.0.0", "2.0.0-beta.1"]

    def test_git_index_is_rejected(self, tmp_path):
        location = SourceLocation.for_registry("mirror", "https://example.com/index.git")
        with pytest.raises(SourceError):
            RegistrySource(location, tmp_path)

    def test_download_verifies_and_unpacks(self, tmp_path):
        payload = _crate_bytes("demo", "1.0.0")
        digest = hashlib.sha256(payload).hexdigest()
        source = self._source(tmp_path)
        source.client._config = CONFIG

        def fake_download(url, target, *, context):
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(payload)
            return hashlib.sha256(payload).hexdigest()

        with patch('registry.crates.download_file', side_effect=fake_download) as mock_dl:
            pkg = source.download(
                PackageSummary(name="demo", version=semantic_version.Version("1.0.0"), checksum=digest)
            )

        assert mock_dl.call_args.args[0] == "https://static.example.com/crates/demo/1.0.0/download"
        assert pkg.name == "demo"
        assert pkg.version == "1.0.0"
        assert pkg.root == source.src_dir / "demo-1.0.0"
        assert (pkg.root / "Cargo.toml").is_file()
        assert (pkg.root / ".cargo-ok").read_text() == '{"v":1}'

    def test_download_reuses_unpacked_cache(self, tmp_path):
        source = self._source(tmp_path)
        root = source.src_dir / "demo-1.0.0"
        root.mkdir(parents=True)
        (root / ".cargo-ok").write_text('{"v":1}')

        with patch('registry.crates.download_file') as mock_dl:
            pkg = source.download(PackageSummary(name="demo", version=semantic_version.Version("1.0.0")))

        mock_dl.assert_not_called()
        assert pkg.root == root

    def test_checksum_mismatch_raises(self, tmp_path):
        payload = _crate_bytes("demo", "1.0.0")
        source = self._source(tmp_path)
        source.client._config = CONFIG

        def fake_download(url, target, *, context):
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(payload)
            return hashlib.sha256(payload).hexdigest()

        with patch('registry.crates.download_file', side_effect=fake_download):
            with pytest.raises(SourceError, match="checksum"):
                source.download(
                    PackageSummary(name="demo", version=semantic_version.Version("1.0.0"),
                                   checksum="f" * 64)
                )

        assert not (source.src_dir / "demo-1.0.0").exists()
        assert not (source.cache_dir / "demo-1.0.0.crate").exists()
