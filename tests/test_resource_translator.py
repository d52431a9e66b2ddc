import math
import pytest
from pydantic import ValidationError
from models import ContainerConfig
from resource_translator import (
    translate,
    translate_resize,
    nano_cpus,
    cpu_share_from_nano_cpus,
)


class TestTranslate:
    """Test cases for the container-create translation"""

    def test_without_port_pair_produces_no_ports(self):
        params = translate(ContainerConfig(image="busybox"))
        assert params.body["ExposedPorts"] == {}
        assert params.body["HostConfig"]["PortBindings"] == {}

    def test_empty_port_pair_produces_no_ports(self):
        params = translate(ContainerConfig(image="busybox", port_pair=("", "")))
        assert params.body["ExposedPorts"] == {}
        assert params.body["HostConfig"]["PortBindings"] == {}

    def test_port_pair_produces_one_exposed_port_and_one_binding(self):
        params = translate(ContainerConfig(image="busybox", port_pair=("4812", "4821")))
        assert params.body["ExposedPorts"] == {"4812/tcp": {}}
        assert params.body["HostConfig"]["PortBindings"] == {
            "4812/tcp": [{"HostIp": "", "HostPort": "4821"}]
        }

    def test_port_protocol_is_kept(self):
        params = translate(ContainerConfig(image="busybox", port_pair=("53/udp", "5353")))
        assert list(params.body["ExposedPorts"]) == ["53/udp"]
        assert list(params.body["HostConfig"]["PortBindings"]) == ["53/udp"]

    def test_resources_and_fields(self):
        config = ContainerConfig(
            name="lifecycle_test",
            image="busybox:latest",
            command=["sleep", "300"],
            memory_limit=10_000_000,
            cpu_share=0.5,
            network_mode="host",
            env=["A=1", "B=2"],
        )
        params = translate(config)

        assert params.name == "lifecycle_test"
        assert params.body["Image"] == "busybox:latest"
        assert params.body["Cmd"] == ["sleep", "300"]
        assert params.body["Env"] == ["A=1", "B=2"]
        assert params.body["Tty"] is True
        assert params.body["HostConfig"]["Memory"] == 10_000_000
        assert params.body["HostConfig"]["NanoCpus"] == 500_000_000
        assert params.body["HostConfig"]["NetworkMode"] == "host"

    def test_defaults_leave_choices_to_the_engine(self):
        params = translate(ContainerConfig(image="busybox"))
        assert params.name is None
        assert params.body["Cmd"] is None
        assert params.body["HostConfig"]["NetworkMode"] == ""
        assert params.body["HostConfig"]["Memory"] == 0

    def test_out_of_range_values_are_passed_through(self):
        params = translate(ContainerConfig(image="busybox", memory_limit=-1, cpu_share=-0.25))
        assert params.body["HostConfig"]["Memory"] == -1
        assert params.body["HostConfig"]["NanoCpus"] == -250_000_000


class TestTranslateResize:
    """Test cases for the live-resize translation"""

    def test_only_resource_fields(self):
        params = translate_resize(20_000_000, 1.5)
        assert params.body == {"Memory": 20_000_000, "NanoCpus": 1_500_000_000}

    @pytest.mark.parametrize("cpu_share", [0.0, 0.1, 0.2, 0.3, 0.5, 0.7, 1.0, 2.75, 3.333])
    def test_cpu_share_round_trip(self, cpu_share):
        params = translate_resize(0, cpu_share)
        recovered = cpu_share_from_nano_cpus(params.body["NanoCpus"])
        assert recovered == pytest.approx(cpu_share, abs=1e-9)

    def test_conversion_is_stable_across_calls(self):
        assert len({nano_cpus(0.3) for _ in range(100)}) == 1
        assert nano_cpus(0.3) == 300_000_000


class TestNonFiniteCPUShare:
    """Test cases for NaN and infinite CPU shares"""

    @pytest.mark.parametrize("cpu_share", [float("nan"), float("inf"), float("-inf")])
    def test_config_rejects_non_finite(self, cpu_share):
        with pytest.raises(ValidationError):
            ContainerConfig(image="busybox", cpu_share=cpu_share)

    def test_resize_forwards_infinity_without_raising(self):
        params = translate_resize(0, float("inf"))
        assert params.body["NanoCpus"] == float("inf")

    def test_resize_forwards_nan_without_raising(self):
        params = translate_resize(0, float("nan"))
        assert math.isnan(params.body["NanoCpus"])
