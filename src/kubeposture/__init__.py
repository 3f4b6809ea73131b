"""KubePosture: risk signal aggregation and posture scoring for Kubernetes clusters."""

__version__ = "0.3.0"
