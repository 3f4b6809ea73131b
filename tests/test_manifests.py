"""Tests for manifest loading."""

import json

from kubeposture.manifests import by_kind, load_manifests, metadata, parse_manifests


class TestParseManifests:
    def test_multi_document(self):
        content = "kind: Pod\nmetadata: {name: a}\n---\nkind: Service\nmetadata: {name: b}\n---\n"
        assert [o["kind"] for o in parse_manifests(content, "x.yaml")] == ["Pod", "Service"]

    def test_list_is_flattened(self):
        content = json.dumps({"kind": "List", "items": [{"kind": "Pod"}, {"kind": "Secret"}]})
        assert [o["kind"] for o in parse_manifests(content, "dump.json")] == ["Pod", "Secret"]

    def test_typed_list(self):
        content = "kind: PodList\nitems:\n  - kind: Pod\n    metadata: {name: a}\n"
        assert [o["metadata"]["name"] for o in parse_manifests(content)] == ["a"]

    def test_non_objects_skipped(self):
        assert parse_manifests("- 1\n- 2\n---\njust text\n---\nfoo: bar\n") == []


class TestLoadManifests:
    def test_directory(self, tmp_path):
        (tmp_path / "a.yaml").write_text("kind: Pod\nmetadata: {name: a}\n")
        nested = tmp_path / "nested"
        nested.mkdir()
        (nested / "b.json").write_text('{"kind": "Deployment", "metadata": {"name": "b"}}')
        (tmp_path / "notes.txt").write_text("kind: Pod\n")
        assert [o["kind"] for o in load_manifests(tmp_path)] == ["Pod", "Deployment"]

    def test_bad_file_is_skipped(self, tmp_path, caplog):
        (tmp_path / "a.yaml").write_text("kind: Pod\n")
        (tmp_path / "b.yaml").write_text("kind: [unclosed\n")
        with caplog.at_level("WARNING", logger="kubeposture.manifests"):
            objects = load_manifests(tmp_path)
        assert [o["kind"] for o in objects] == ["Pod"]
        assert "b.yaml" in caplog.text

    def test_single_file(self, tmp_path):
        f = tmp_path / "pod.yml"
        f.write_text("kind: Pod\n")
        assert len(load_manifests(f)) == 1

    def test_missing_path(self, tmp_path):
        assert load_manifests(tmp_path / "nope") == []


class TestHelpers:
    def test_by_kind(self):
        objs = [{"kind": "Pod"}, {"kind": "Role"}, {"kind": "ClusterRole"}]
        assert len(by_kind(objs, "Role", "ClusterRole")) == 2

    def test_metadata(self):
        assert metadata({"metadata": {"name": "a", "namespace": "b"}}) == ("a", "b")
        assert metadata({"metadata": {"name": "a", "namespace": None}}) == ("a", "")
        assert metadata({}) == ("", "")
