"""Shared manifest fixtures."""

import pytest

CLUSTER_ADMIN_BINDING = {
    "kind": "ClusterRoleBinding",
    "metadata": {"name": "ops-admin"},
    "roleRef": {"kind": "ClusterRole", "name": "cluster-admin"},
    "subjects": [{"kind": "User", "name": "bob"}],
}

PRIVILEGED_POD = {
    "kind": "Pod",
    "metadata": {"name": "debug", "namespace": "shop"},
    "spec": {
        "securityContext": {"runAsNonRoot": True},
        "containers": [{
            "name": "shell",
            "image": "busybox:1.36",
            "securityContext": {"privileged": True, "runAsNonRoot": True, "readOnlyRootFilesystem": True},
        }],
    },
}

MANIFEST_YAML = """\
apiVersion: rbac.authorization.k8s.io/v1
kind: ClusterRoleBinding
metadata:
  name: ops-admin
roleRef:
  kind: ClusterRole
  name: cluster-admin
subjects:
  - kind: User
    name: bob
---
apiVersion: v1
kind: Pod
metadata:
  name: debug
  namespace: shop
spec:
  securityContext:
    runAsNonRoot: true
  containers:
    - name: shell
      image: busybox:1.36
      securityContext:
        privileged: true
        runAsNonRoot: true
        readOnlyRootFilesystem: true
"""


@pytest.fixture
def risky_manifests():
    """cluster-admin bound to a user, a privileged pod, no NetworkPolicy."""
    return [CLUSTER_ADMIN_BINDING, PRIVILEGED_POD]


@pytest.fixture
def manifest_dir(tmp_path):
    path = tmp_path / "manifests"
    path.mkdir()
    (path / "cluster.yaml").write_text(MANIFEST_YAML)
    return path
