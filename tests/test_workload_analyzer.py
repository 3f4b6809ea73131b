"""Tests for the workload analyzer."""

import pytest

from kubeposture.adapter import signals_from_findings
from kubeposture.analyzers.workloads import analyze, check_pod_spec, pod_spec

HARDENED_CONTAINER = {
    "name": "app",
    "image": "registry.local/app:1.4.2",
    "securityContext": {"runAsNonRoot": True, "readOnlyRootFilesystem": True},
    "resources": {"limits": {"cpu": "1"}, "requests": {"cpu": "100m"}},
}


def _pod(name="web", namespace="shop", **spec):
    spec.setdefault("securityContext", {"runAsNonRoot": True})
    spec.setdefault("containers", [dict(HARDENED_CONTAINER)])
    return {"kind": "Pod", "metadata": {"name": name, "namespace": namespace}, "spec": spec}


def _deployment(name="api", labels=None, **pod):
    pod.setdefault("securityContext", {"runAsNonRoot": True})
    pod.setdefault("containers", [dict(HARDENED_CONTAINER)])
    meta = {"name": name, "namespace": "shop"}
    if labels is not None:
        meta["labels"] = labels
    return {"kind": "Deployment", "metadata": meta, "spec": {"template": {"spec": pod}}}


class TestPodSpec:
    def test_pod(self):
        assert pod_spec(_pod())["containers"][0]["name"] == "app"

    def test_deployment_template(self):
        assert pod_spec(_deployment(labels={"a": "b"}))["containers"][0]["name"] == "app"

    def test_cronjob(self):
        cron = {"kind": "CronJob", "spec": {"jobTemplate": {"spec": {"template": {"spec": {"containers": []}}}}}}
        assert pod_spec(cron) == {"containers": []}

    def test_missing_template(self):
        assert pod_spec({"kind": "Deployment", "spec": {}}) is None


class TestCheckPodSpec:
    def test_hardened_pod_is_clean(self):
        assert check_pod_spec("Pod", "web", "shop", _pod()["spec"]) == []

    def test_privileged_container(self):
        c = dict(HARDENED_CONTAINER, securityContext={"privileged": True, "runAsNonRoot": True,
                                                      "readOnlyRootFilesystem": True})
        findings = check_pod_spec("Pod", "web", "shop", _pod(containers=[c])["spec"])
        assert findings == ["[HIGH] Pod/web (shop): container app runs privileged"]

    def test_host_namespaces(self):
        spec = _pod(hostNetwork=True, hostPID=True, hostIPC=True)["spec"]
        findings = check_pod_spec("Pod", "web", "shop", spec)
        assert "[HIGH] Pod/web (shop): uses hostNetwork" in findings
        assert any("hostPID" in f and f.startswith("[CRITICAL]") for f in findings)
        assert any("hostIPC" in f for f in findings)

    def test_host_paths(self):
        spec = _pod(volumes=[
            {"name": "sock", "hostPath": {"path": "/var/run/docker.sock"}},
            {"name": "data", "hostPath": {"path": "/data"}},
        ])["spec"]
        findings = check_pod_spec("Pod", "web", "shop", spec)
        assert "[CRITICAL] Pod/web (shop): mounts sensitive host path /var/run/docker.sock" in findings
        assert "[MEDIUM] Pod/web (shop): mounts host path /data" in findings

    def test_capabilities(self):
        c = dict(HARDENED_CONTAINER)
        c["securityContext"] = dict(HARDENED_CONTAINER["securityContext"], capabilities={"add": ["sys_admin", "CHOWN"]})
        findings = check_pod_spec("Pod", "web", "shop", _pod(containers=[c])["spec"])
        assert findings == ["[HIGH] Pod/web (shop): container app adds capability SYS_ADMIN"]

    def test_weak_security_context(self):
        c = {"name": "app", "image": "app:2", "securityContext": {"allowPrivilegeEscalation": True}}
        findings = check_pod_spec("Pod", "web", "shop", {"containers": [c]})
        assert "[INFO] Pod/web (shop): no pod security context defined" in findings
        assert "[MEDIUM] Pod/web (shop): container app allows privilege escalation" in findings
        assert "[INFO] Pod/web (shop): container app may run as root" in findings
        assert "[INFO] Pod/web (shop): container app has writable root filesystem" in findings

    @pytest.mark.parametrize("image,flagged", [
        ("nginx", True),
        ("nginx:latest", True),
        ("registry:5000/team/nginx", True),
        ("registry:5000/team/nginx:1.25", False),
        ("nginx@sha256:abc", False),
    ])
    def test_mutable_tags(self, image, flagged):
        c = dict(HARDENED_CONTAINER, image=image)
        findings = check_pod_spec("Pod", "web", "shop", _pod(containers=[c])["spec"])
        assert any("mutable image tag" in f for f in findings) is flagged

    def test_resources_checked_for_controllers_only(self):
        c = dict(HARDENED_CONTAINER, resources={})
        spec = _pod(containers=[c])["spec"]
        assert check_pod_spec("Pod", "web", "shop", spec) == []
        findings = check_pod_spec("Deployment", "web", "shop", spec, controller=True)
        assert "[MEDIUM] Deployment/web (shop): container app has no resource limits defined" in findings
        assert "[INFO] Deployment/web (shop): container app has no resource requests defined" in findings

    def test_secrets_into_containers(self):
        c = dict(HARDENED_CONTAINER,
                 env=[{"name": "DB_PASS", "valueFrom": {"secretKeyRef": {"name": "db", "key": "pw"}}}],
                 envFrom=[{"secretRef": {"name": "api-keys"}}])
        spec = _pod(containers=[c], volumes=[{"name": "tls", "secret": {"secretName": "tls-cert"}}])["spec"]
        findings = check_pod_spec("Pod", "web", "shop", spec)
        assert "[HIGH] Pod/web (shop): container app reads secret db through env" in findings
        assert "[HIGH] Pod/web (shop): container app loads secret api-keys into env" in findings
        assert "[MEDIUM] Pod/web (shop): mounts secret tls-cert as a volume" in findings


class TestAnalyze:
    def test_deployment_missing_labels(self):
        result = analyze([_deployment()])
        assert [s.name for s in result.signals] == ["DeploymentMissingLabels"]
        assert result.evidence == ["[MEDIUM] Deployment/api (shop): deployment has no labels"]

    def test_labelled_deployment(self):
        assert analyze([_deployment(labels={"app": "api"})]).signals == []

    def test_default_namespace(self):
        pod = _pod(hostNetwork=True)
        del pod["metadata"]["namespace"]
        assert analyze([pod]).findings == ["[HIGH] Pod/web (default): uses hostNetwork"]

    def test_findings_adapt_to_expected_categories(self):
        c = dict(HARDENED_CONTAINER,
                 env=[{"name": "T", "valueFrom": {"secretKeyRef": {"name": "tok"}}}],
                 securityContext={"privileged": True, "runAsNonRoot": True, "readOnlyRootFilesystem": True})
        result = analyze([_pod(containers=[c], hostIPC=True)])
        names = {s.name for s in signals_from_findings(result.findings)}
        assert names == {"PrivilegedWorkload", "SecretsExposure", "CriticalFindingsPresent"}

    def test_non_workloads_ignored(self):
        assert analyze([{"kind": "Service", "metadata": {"name": "s"}}]).findings == []
