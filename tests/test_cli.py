"""Tests for the command line interface."""

import json

from typer.testing import CliRunner

from kubeposture import __version__
from kubeposture.cli import app

runner = CliRunner()


class TestAssess:
    def test_scores_manifests(self, manifest_dir):
        result = runner.invoke(app, ["assess", "--path", str(manifest_dir)])
        assert result.exit_code == 0, result.output
        assert "Risk Score: 76/100" in result.output
        assert "Evidence: PrivilegedWorkload, ClusterAdminBinding" in result.output
        assert "Remediation: Apply default deny NetworkPolicy" in result.output

    def test_writes_reports(self, manifest_dir, tmp_path):
        html_out = tmp_path / "report.html"
        json_out = tmp_path / "report.json"
        result = runner.invoke(app, [
            "assess", "--path", str(manifest_dir), "--namespace", "shop",
            "--report", str(html_out), "--report-json", str(json_out),
        ])
        assert result.exit_code == 0, result.output
        assert "KubePosture Risk Report" in html_out.read_text()
        data = json.loads(json_out.read_text())
        assert data["score"] == 76
        assert "namespace: shop" in data["remediations"][0]["template"]

    def test_remediation_for_each_flagged_namespace(self, manifest_dir, tmp_path):
        (manifest_dir / "blog.yaml").write_text(
            "kind: Pod\nmetadata: {name: web, namespace: blog}\nspec: {}\n"
        )
        json_out = tmp_path / "report.json"
        result = runner.invoke(app, ["assess", "--path", str(manifest_dir), "--report-json", str(json_out)])
        assert result.exit_code == 0, result.output
        data = json.loads(json_out.read_text())
        assert [r["namespace"] for r in data["remediations"]] == ["blog", "shop"]
        assert "namespace: default" not in json_out.read_text()

    def test_missing_path(self, tmp_path):
        result = runner.invoke(app, ["assess", "--path", str(tmp_path / "nope")])
        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_ci_threshold_reached(self, manifest_dir):
        result = runner.invoke(app, ["assess", "--path", str(manifest_dir), "--ci", "--threshold", "60"])
        assert result.exit_code == 2

    def test_ci_threshold_not_reached(self, manifest_dir):
        result = runner.invoke(app, ["assess", "--path", str(manifest_dir), "--ci", "--threshold", "90"])
        assert result.exit_code == 0

    def test_threshold_from_config(self, manifest_dir, tmp_path):
        config = tmp_path / "kubeposture.yaml"
        config.write_text("fail_threshold: 50\n")
        result = runner.invoke(app, ["assess", "--path", str(manifest_dir), "--config", str(config), "--ci"])
        assert result.exit_code == 2

    def test_bad_config(self, manifest_dir, tmp_path):
        config = tmp_path / "kubeposture.yaml"
        config.write_text("colour: blue\n")
        result = runner.invoke(app, ["assess", "--path", str(manifest_dir), "--config", str(config)])
        assert result.exit_code == 1
        assert "colour" in result.output

    def test_bad_rules(self, manifest_dir, tmp_path):
        rules = tmp_path / "rules"
        rules.mkdir()
        (rules / "categories.yaml").write_text("- name: X\n  severity: urgent\n  weight: 1\n  contains_any: [x]\n")
        result = runner.invoke(app, ["assess", "--path", str(manifest_dir), "--rules-dir", str(rules)])
        assert result.exit_code == 1

    def test_bad_rule_weight(self, manifest_dir, tmp_path):
        rules = tmp_path / "rules"
        rules.mkdir()
        (rules / "categories.yaml").write_text("- name: X\n  severity: low\n  weight: heavy\n  contains_any: [x]\n")
        result = runner.invoke(app, ["assess", "--path", str(manifest_dir), "--rules-dir", str(rules)])
        assert result.exit_code == 1
        assert "weight" in result.output

    def test_analyzer_subset(self, manifest_dir):
        result = runner.invoke(app, ["assess", "--path", str(manifest_dir), "--analyzers", "network"])
        assert result.exit_code == 0
        assert "Risk Score: 30/100" in result.output


class TestScoreFindings:
    def test_scores_text(self, tmp_path):
        findings = tmp_path / "findings.txt"
        findings.write_text(
            "[CRITICAL] ClusterRoleBinding/x (cluster-wide): cluster-admin bound to User y\n"
            "\n"
            "[HIGH] Pod/a (shop): container c runs privileged\n"
        )
        out = tmp_path / "out.json"
        result = runner.invoke(app, ["score-findings", "--file", str(findings), "--report-json", str(out)])
        assert result.exit_code == 0, result.output
        assert "Risk Score: 70/100" in result.output
        data = json.loads(out.read_text())
        assert data["attack_paths"][0]["id"] == "pod-to-cluster-admin"
        assert len(data["findings"]) == 2

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["score-findings", "--file", str(tmp_path / "nope.txt")])
        assert result.exit_code == 1

    def test_directory_as_file(self, tmp_path):
        result = runner.invoke(app, ["score-findings", "--file", str(tmp_path)])
        assert result.exit_code == 1
        assert "cannot read findings file" in result.output

    def test_invalid_utf8(self, tmp_path):
        findings = tmp_path / "findings.txt"
        findings.write_bytes(b"[HIGH] Pod/a (shop): \xff\xfe broken\n")
        result = runner.invoke(app, ["score-findings", "--file", str(findings)])
        assert result.exit_code == 1
        assert "cannot read findings file" in result.output


class TestInfoCommands:
    def test_analyzers(self):
        result = runner.invoke(app, ["analyzers"])
        assert result.exit_code == 0
        assert result.output.split() == ["rbac", "workloads", "secrets", "network", "controlplane"]

    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert __version__ in result.output
