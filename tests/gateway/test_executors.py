from __future__ import annotations

import pytest
from botocore.exceptions import EndpointConnectionError

from opsgateway.commands import parse_command
from opsgateway.control_plane import ACTIVE_INSTANCE_STATES, ControlPlane
from opsgateway.errors import ControlPlaneError
from opsgateway.executors import ComputeGroupExecutor, ManagedServiceExecutor, build_executors
from opsgateway.permissions import ResourceKind
from tests.helpers.fakes import FakeECSClient, FakeEC2Client, client_error


def _compute(ec2: FakeEC2Client) -> ComputeGroupExecutor:
    return ComputeGroupExecutor(ControlPlane(ec2_client=ec2, ecs_client=FakeECSClient()))


def _service(ecs: FakeECSClient) -> ManagedServiceExecutor:
    return ManagedServiceExecutor(ControlPlane(ec2_client=FakeEC2Client(), ecs_client=ecs))


def test_build_executors_has_one_handler_per_kind() -> None:
    executors = build_executors(ControlPlane(ec2_client=FakeEC2Client(), ecs_client=FakeECSClient()))

    assert set(executors) == set(ResourceKind)
    assert isinstance(executors[ResourceKind.EC2], ComputeGroupExecutor)
    assert isinstance(executors[ResourceKind.ECS], ManagedServiceExecutor)


def test_lookup_filters_by_name_tag_and_active_states() -> None:
    ec2 = FakeEC2Client({"dev-qa-servers": ["i-1", "i-2", "i-3"]})
    plane = ControlPlane(ec2_client=ec2)

    ids = plane.lookup_compute_group_members("dev-qa-servers")

    assert ids == ["i-1", "i-2", "i-3"]
    filters = ec2.paginator.calls[0]["Filters"]
    assert {"Name": "tag:Name", "Values": ["dev-qa-servers"]} in filters
    assert {
        "Name": "instance-state-name",
        "Values": ["pending", "running", "stopping", "stopped"],
    } in filters
    assert "terminated" not in ACTIVE_INSTANCE_STATES


def test_start_issues_one_bulk_call() -> None:
    ec2 = FakeEC2Client({"dev-qa-servers": ["i-1", "i-2"]})

    message = _compute(ec2).execute(parse_command("/start-ec2", "dev-qa-servers"), "alice")

    assert ec2.started == [["i-1", "i-2"]]
    assert ec2.stopped == []
    assert message == 'User @alice is starting EC2 instances with name "dev-qa-servers": i-1, i-2'


def test_stop_issues_one_bulk_call() -> None:
    ec2 = FakeEC2Client({"dev-qa-servers": ["i-9"]})

    message = _compute(ec2).execute(parse_command("/stop-ec2", "dev-qa-servers"), "alice")

    assert ec2.stopped == [["i-9"]]
    assert "is stopping EC2 instances" in message
    assert "i-9" in message


def test_stop_twice_on_empty_group_reports_not_found_both_times() -> None:
    ec2 = FakeEC2Client()
    executor = _compute(ec2)
    command = parse_command("/stop-ec2", "dev-qa-servers")

    first = executor.execute(command, "alice")
    second = executor.execute(command, "alice")

    expected = "No EC2 instances found with the name: dev-qa-servers"
    assert first == expected
    assert second == expected
    assert ec2.stopped == []


def test_compute_transition_failure_becomes_message() -> None:
    ec2 = FakeEC2Client({"dev-qa-servers": ["i-1"]})
    ec2.transition_error = client_error("UnauthorizedOperation", "StartInstances", "denied")

    message = _compute(ec2).execute(parse_command("/start-ec2", "dev-qa-servers"), "alice")

    assert message.startswith('Failed to start EC2 instances with the name "dev-qa-servers".')
    assert "UnauthorizedOperation" in message


def test_compute_lookup_failure_becomes_message() -> None:
    ec2 = FakeEC2Client()
    ec2.describe_error = EndpointConnectionError(endpoint_url="https://ec2.invalid")

    message = _compute(ec2).execute(parse_command("/stop-ec2", "dev-qa-servers"), "alice")

    assert message.startswith('Failed to look up EC2 instances with the name "dev-qa-servers".')
    assert ec2.stopped == []


def test_service_start_pins_revision() -> None:
    ecs = FakeECSClient()

    message = _service(ecs).execute(
        parse_command("/start-ecs", "staging-cluster myservice v42"), "maria"
    )

    assert ecs.calls == [
        {
            "cluster": "staging-cluster",
            "service": "myservice",
            "desiredCount": 1,
            "forceNewDeployment": True,
            "taskDefinition": "v42",
        }
    ]
    assert "v42" in message
    assert message.startswith("User @maria has successfully started")


def test_service_start_without_revision_uses_latest() -> None:
    ecs = FakeECSClient()

    message = _service(ecs).execute(parse_command("/start-ecs", "staging-cluster myservice"), "m")

    assert "taskDefinition" not in ecs.calls[0]
    assert ecs.calls[0]["forceNewDeployment"] is True
    assert 'using task definition "latest"' in message


def test_service_stop_scales_to_zero_without_revision() -> None:
    ecs = FakeECSClient()

    message = _service(ecs).execute(
        parse_command("/stop-ecs", "staging-cluster myservice v42"), "maria"
    )

    assert ecs.calls == [
        {"cluster": "staging-cluster", "service": "myservice", "desiredCount": 0}
    ]
    assert message == 'User @maria is stopping ECS service "myservice" in cluster "staging-cluster".'


def test_service_failure_becomes_message() -> None:
    ecs = FakeECSClient()
    ecs.fail_with = client_error("ServiceNotFoundException", "UpdateService", "Service not found.")

    start = _service(ecs).execute(parse_command("/start-ecs", "staging-cluster api"), "maria")
    stop = _service(ecs).execute(parse_command("/stop-ecs", "staging-cluster api"), "maria")

    assert start.startswith(
        'Failed to start or deploy the ECS service "api" in cluster "staging-cluster". Error:'
    )
    assert "Service not found." in start
    assert stop.startswith('Failed to stop the ECS service "api" in cluster "staging-cluster".')
    assert len(ecs.calls) == 2


def test_lookup_failure_raises_control_plane_error(caplog: pytest.LogCaptureFixture) -> None:
    ec2 = FakeEC2Client()
    ec2.describe_error = EndpointConnectionError(endpoint_url="https://ec2.invalid")
    plane = ControlPlane(ec2_client=ec2)

    caplog.set_level("ERROR")
    with pytest.raises(ControlPlaneError) as excinfo:
        plane.lookup_compute_group_members("dev-qa-servers")

    assert excinfo.value.context["operation"] == "describe_instances"
    assert excinfo.value.context["name_tag"] == "dev-qa-servers"
    assert any(record.getMessage() == "Control plane call failed" for record in caplog.records)
