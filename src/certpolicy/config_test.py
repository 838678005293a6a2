from pathlib import Path

import pytest

from certpolicy.config import (
    ControllerConfig,
    HubSecretRef,
    NoNamespaceError,
    WatchNamespaceError,
    get_operator_namespace,
    get_watch_namespaces,
)


def test__ControllerConfig__load__defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    config = ControllerConfig.load()
    assert config == ControllerConfig()
    assert config.hub == HubSecretRef(
        namespace="open-cluster-management-agent-addon", name="cert-policy-controller-hub-kubeconfig"
    )
    assert config.cluster_name == "default-cluster"
    assert config.strict_scope is False
    assert config.request_timeout is None


def test__ControllerConfig__load__from_parent_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ControllerConfig.FILENAME).write_text(
        "cluster_name: cluster1\n"
        "hub:\n"
        "  name: my-hub-kubeconfig\n"
        "strict_scope: true\n"
        "request_timeout: 30.0\n"
    )
    (tmp_path / "sub").mkdir()
    monkeypatch.chdir(tmp_path / "sub")

    config = ControllerConfig.load()
    assert config.cluster_name == "cluster1"
    assert config.hub == HubSecretRef(namespace="open-cluster-management-agent-addon", name="my-hub-kubeconfig")
    assert config.strict_scope is True
    assert config.request_timeout == 30.0


def test__ControllerConfig__load__empty_file(tmp_path: Path) -> None:
    file = tmp_path / "config.yaml"
    file.write_text("")
    assert ControllerConfig.load(file) == ControllerConfig()


def test__get_watch_namespaces(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WATCH_NAMESPACE", "")
    assert get_watch_namespaces() == []

    monkeypatch.setenv("WATCH_NAMESPACE", "cluster1")
    assert get_watch_namespaces() == ["cluster1"]

    monkeypatch.setenv("WATCH_NAMESPACE", "a, b,,c")
    assert get_watch_namespaces() == ["a", "b", "c"]

    monkeypatch.delenv("WATCH_NAMESPACE")
    with pytest.raises(WatchNamespaceError):
        get_watch_namespaces()


def test__get_operator_namespace(tmp_path: Path) -> None:
    file = tmp_path / "namespace"
    file.write_text("open-cluster-management-agent-addon\n")
    assert get_operator_namespace(file) == "open-cluster-management-agent-addon"

    with pytest.raises(NoNamespaceError):
        get_operator_namespace(tmp_path / "missing")
