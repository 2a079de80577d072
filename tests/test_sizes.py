"""Tests for the size and disk usage loaders."""

from unittest.mock import MagicMock

from docker_exporter.monitoring.base import ContainerSize
from docker_exporter.monitoring.sizes import (
    container_size_loader,
    disk_usage_loader,
    parse_container_sizes,
    parse_disk_usage,
)


class TestParseContainerSizes:
    """Tests for parse_container_sizes."""

    def test_sizes_by_id(self):
        """Test mapping the listing to sizes keyed by container ID."""
        sizes = parse_container_sizes(
            [
                {"Id": "a", "SizeRw": 10, "SizeRootFs": 100},
                {"Id": "b"},
            ]
        )
        assert sizes == {
            "a": ContainerSize(size_rw=10, size_root_fs=100),
            "b": ContainerSize(size_rw=0, size_root_fs=0),
        }


class TestParseDiskUsage:
    """Tests for parse_disk_usage."""

    def test_summary(self):
        """Test summing counts and sizes per object type."""
        usage = parse_disk_usage(
            {
                "LayersSize": 5000,
                "Images": [{"Size": 1000}, {"Size": 2000}],
                "Containers": [{"SizeRw": 10}, {"SizeRw": 20}, {"SizeRw": -1}],
                "Volumes": [
                    {"UsageData": {"Size": 300}},
                    {"UsageData": {"Size": -1}},
                    {"UsageData": None},
                ],
                "BuildCache": [{"Size": 7}],
            }
        )
        assert usage.layers_size == 5000
        assert usage.images_count == 2
        assert usage.images_size == 3000
        assert usage.containers_count == 3
        assert usage.containers_size == 30
        assert usage.volumes_count == 3
        assert usage.volumes_size == 300
        assert usage.build_cache_count == 1
        assert usage.build_cache_size == 7

    def test_null_sections(self):
        """Test that null sections count as empty."""
        usage = parse_disk_usage({"Images": None, "BuildCache": None})
        assert usage.images_count == 0
        assert usage.build_cache_size == 0
        assert usage.to_dict()["layers_size"] == 0


class TestLoaders:
    """Tests for the loader factories."""

    def test_container_size_loader(self):
        """Test that the loader requests sizes of all containers."""
        api = MagicMock()
        api.containers.return_value = [{"Id": "a", "SizeRw": 1, "SizeRootFs": 2}]

        sizes = container_size_loader(api)()

        api.containers.assert_called_once_with(all=True, size=True)
        assert sizes["a"].size_root_fs == 2

    def test_disk_usage_loader(self):
        """Test that the loader calls the df endpoint on each invocation."""
        api = MagicMock()
        api.df.return_value = {"LayersSize": 1}
        load = disk_usage_loader(api)

        load()
        load()

        assert api.df.call_count == 2
