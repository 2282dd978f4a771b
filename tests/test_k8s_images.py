"""Tests for KubernetesImageResolver."""

import json
import logging

import pytest
from conftest import FakeCommandRunner, fail, make_pod, ok

from offline_images.discovery.k8s_images import KubernetesImageResolver
from offline_images.errors import ResolutionError
from offline_images.models.model_k8s import PodList


def _resolver(runner: FakeCommandRunner, pods: dict | None = None) -> KubernetesImageResolver:
    if pods is not None:
        runner.script(["kubectl", "get", "pods"], ok(json.dumps(pods)))
    return KubernetesImageResolver(runner)


class TestExtractImages:
    """Tests for container record extraction."""

    def test_records_init_then_regular_then_ephemeral(self, runner: FakeCommandRunner) -> None:
        """Records follow init, regular, ephemeral order within a pod."""
        pod = make_pod("p1", ["app:1"], init_images=["init:1"])
        pod["spec"]["ephemeralContainers"] = [{"name": "debug", "image": "debug:1"}]
        pods = PodList.model_validate({"items": [pod]})

        records = KubernetesImageResolver(runner).extract_images(pods)

        assert [r.image for r in records] == ["init:1", "app:1", "debug:1"]
        assert [r.container_name for r in records] == ["init0", "c0", "debug"]
        assert all(r.pod_name == "p1" for r in records)

    def test_missing_metadata_defaults(self, runner: FakeCommandRunner) -> None:
        """Pods without name or namespace get placeholder values."""
        pods = PodList.model_validate({"items": [{"spec": {"containers": [{"image": "x:1"}]}}]})

        records = KubernetesImageResolver(runner).extract_images(pods)

        assert records[0].pod_name == "unknown"
        assert records[0].namespace == "default"

    def test_empty_pod_list(self, runner: FakeCommandRunner) -> None:
        """No pods yields no records."""
        assert KubernetesImageResolver(runner).extract_images(PodList()) == []

    def test_unique_images_sorted(self, runner: FakeCommandRunner, sample_pod_list: dict) -> None:
        """Unique images are de-duplicated and sorted."""
        resolver = KubernetesImageResolver(runner)
        records = resolver.extract_images(PodList.model_validate(sample_pod_list))

        assert resolver.get_unique_images(records) == ["alpine:3.19", "busybox:1.36", "nginx:1.25"]


class TestHelmReleaseFilter:
    """Tests for Helm release label matching."""

    def test_label_precedence(self) -> None:
        """app.kubernetes.io/instance wins over release and helm.sh/chart."""
        pods = PodList.model_validate(
            {
                "items": [
                    make_pod(
                        "p1",
                        ["a:1"],
                        labels={"app.kubernetes.io/instance": "other", "release": "app"},
                    ),
                    make_pod("p2", ["b:1"], labels={"helm.sh/chart": "app-1.2.3"}),
                ]
            }
        )

        filtered = KubernetesImageResolver.filter_pods_by_helm_release(pods, "app")

        assert [p.metadata.name for p in filtered.items] == ["p2"]

    def test_substring_match(self) -> None:
        """Release name matches as a substring of the label value."""
        pods = PodList.model_validate(
            {"items": [make_pod("p1", ["a:1"], labels={"release": "myapp-prod"})]}
        )

        assert len(KubernetesImageResolver.filter_pods_by_helm_release(pods, "app").items) == 1

    def test_empty_label_counts_as_absent(self) -> None:
        """An empty instance label falls through to the next label."""
        pods = PodList.model_validate(
            {
                "items": [
                    make_pod(
                        "p1",
                        ["a:1"],
                        labels={"app.kubernetes.io/instance": "", "release": "app"},
                    )
                ]
            }
        )

        assert len(KubernetesImageResolver.filter_pods_by_helm_release(pods, "app").items) == 1

    def test_unlabelled_pods_excluded(self) -> None:
        """Pods without any release label never match."""
        pods = PodList.model_validate({"items": [make_pod("p1", ["a:1"])]})

        assert KubernetesImageResolver.filter_pods_by_helm_release(pods, "app").items == []


class TestExportImages:
    """Tests for the resolve-and-export flow."""

    @pytest.mark.asyncio
    async def test_release_filter_counts(
        self, runner: FakeCommandRunner, sample_pod_list: dict
    ) -> None:
        """Filtering by release keeps both pods and reports counts."""
        sample_pod_list["items"].append(make_pod("p3", ["redis:7"], labels={"release": "db"}))
        resolver = _resolver(runner, sample_pod_list)

        result = await resolver.export_images(helm_release="app")

        assert result.total_pods == 2
        assert result.total_containers == 4
        assert result.unique_images == 3
        assert result.images == ["alpine:3.19", "busybox:1.36", "nginx:1.25"]
        assert result.helm_release == "app"

    @pytest.mark.asyncio
    async def test_all_namespaces_by_default(
        self, runner: FakeCommandRunner, sample_pod_list: dict
    ) -> None:
        """Without a namespace, kubectl queries all namespaces."""
        resolver = _resolver(runner, sample_pod_list)

        await resolver.export_images()

        assert runner.calls[0] == ["kubectl", "get", "pods", "--all-namespaces", "-o", "json"]

    @pytest.mark.asyncio
    async def test_namespace_scoping(
        self, runner: FakeCommandRunner, sample_pod_list: dict
    ) -> None:
        """A namespace is passed through to kubectl."""
        resolver = _resolver(runner, sample_pod_list)

        await resolver.export_images(namespace="prod")

        assert runner.calls[0] == ["kubectl", "get", "pods", "-n", "prod", "-o", "json"]

    @pytest.mark.asyncio
    async def test_idempotent(self, runner: FakeCommandRunner, sample_pod_list: dict) -> None:
        """Resolving the same pod list twice yields the same image list."""
        resolver = _resolver(runner, sample_pod_list)

        first = await resolver.export_images()
        second = await resolver.export_images()

        assert first.images == second.images

    @pytest.mark.asyncio
    async def test_writes_image_list_when_output_dir_given(
        self, runner: FakeCommandRunner, sample_pod_list: dict, tmp_path
    ) -> None:
        """The image list file holds one reference per line."""
        resolver = _resolver(runner, sample_pod_list)

        await resolver.export_images(output_dir=tmp_path / "out", filename="list.txt")

        content = (tmp_path / "out" / "list.txt").read_text()
        assert content == "alpine:3.19\nbusybox:1.36\nnginx:1.25"

    @pytest.mark.asyncio
    async def test_nothing_written_without_output_dir(
        self, runner: FakeCommandRunner, sample_pod_list: dict, tmp_path, monkeypatch
    ) -> None:
        """No output directory means no file is written."""
        monkeypatch.chdir(tmp_path)
        resolver = _resolver(runner, sample_pod_list)

        await resolver.export_images()

        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_kubectl_failure_raises(self, runner: FakeCommandRunner) -> None:
        """kubectl errors abort with ResolutionError carrying its stderr."""
        runner.script(["kubectl"], fail("The connection to the server was refused"))

        with pytest.raises(ResolutionError, match="connection to the server was refused"):
            await KubernetesImageResolver(runner).export_images()

    @pytest.mark.asyncio
    async def test_unparsable_output_raises(self, runner: FakeCommandRunner) -> None:
        """Non-JSON kubectl output is a resolution failure."""
        runner.script(["kubectl"], ok("not json"))

        with pytest.raises(ResolutionError, match="parse kubectl output"):
            await KubernetesImageResolver(runner).get_all_pods()

    @pytest.mark.asyncio
    async def test_uses_injected_logger(
        self, runner: FakeCommandRunner, sample_pod_list: dict, caplog
    ) -> None:
        """Progress is reported on the logger given at construction."""
        logger = logging.getLogger("custom.k8s")
        runner.script(["kubectl", "get", "pods"], ok(json.dumps(sample_pod_list)))
        resolver = KubernetesImageResolver(runner, logger=logger)

        with caplog.at_level(logging.INFO, logger="custom.k8s"):
            await resolver.export_images()

        assert any(r.name == "custom.k8s" for r in caplog.records)


class TestHelmReleases:
    """Tests for Helm release listing."""

    @pytest.mark.asyncio
    async def test_parses_releases(self, runner: FakeCommandRunner) -> None:
        """helm list JSON becomes HelmRelease models."""
        runner.script(
            ["helm", "list"],
            ok(
                json.dumps(
                    [
                        {
                            "name": "app",
                            "namespace": "prod",
                            "revision": "3",
                            "updated": "2024-01-01 00:00:00",
                            "status": "deployed",
                            "chart": "app-1.2.3",
                            "app_version": "1.2.3",
                        }
                    ]
                )
            ),
        )

        releases = await KubernetesImageResolver(runner).get_helm_releases("prod")

        assert runner.calls[0] == ["helm", "list", "-n", "prod", "-o", "json"]
        assert len(releases) == 1
        assert releases[0].name == "app"
        assert releases[0].chart == "app-1.2.3"
        assert releases[0].app_version == "1.2.3"

    @pytest.mark.asyncio
    async def test_no_releases(self, runner: FakeCommandRunner) -> None:
        """Empty helm output yields an empty list."""
        runner.script(["helm", "list"], ok(""))

        assert await KubernetesImageResolver(runner).get_helm_releases() == []

    @pytest.mark.asyncio
    async def test_helm_failure_raises(self, runner: FakeCommandRunner) -> None:
        """helm errors abort with ResolutionError."""
        runner.script(["helm"], fail("Kubernetes cluster unreachable"))

        with pytest.raises(ResolutionError, match="cluster unreachable"):
            await KubernetesImageResolver(runner).get_helm_releases()
