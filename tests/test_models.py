"""Tests for push models."""
import pytest

from buildpush.errors import ErrorKind, TransferFailedError, UserCancelledError
from buildpush.models import (
    BuildConfigVersion,
    BuildDescriptor,
    OutcomeStatus,
    PostProcessorSpec,
    PushOutcome,
    RemoteBuildConfig,
    UploadPlan,
    VersionBuild,
)


class TestPostProcessorSpec:
    def test_runs_for_every_builder_by_default(self):
        pp = PostProcessorSpec(type="atlas")
        assert pp.skip("docker") is False

    def test_only_limits_builders(self):
        pp = PostProcessorSpec(type="atlas", only=("a",))
        assert pp.skip("a") is False
        assert pp.skip("b") is True

    def test_except_excludes_builders(self):
        pp = PostProcessorSpec(type="atlas", except_=("b",))
        assert pp.skip("a") is False
        assert pp.skip("b") is True


class TestUploadPlan:
    def test_untracked_builds_sorted(self):
        plan = UploadPlan(
            slug="user/demo",
            builds={
                "z": BuildDescriptor("z", "docker", False),
                "a": BuildDescriptor("a", "docker", True),
                "m": BuildDescriptor("m", "qemu", False),
            },
        )
        assert plan.untracked_builds == ["m", "z"]

    def test_immutable(self):
        builds = {"a": BuildDescriptor("a", "docker", True)}
        plan = UploadPlan(slug="user/demo", builds=builds, metadata={"message": "hi"})

        with pytest.raises(Exception):
            plan.slug = "other/demo"
        with pytest.raises(TypeError):
            plan.builds["b"] = BuildDescriptor("b", "docker")
        with pytest.raises(TypeError):
            plan.metadata["message"] = "changed"

        # Mutating the source dict after construction does not leak in.
        builds["b"] = BuildDescriptor("b", "docker")
        assert list(plan.builds) == ["a"]


class TestWireShapes:
    def test_version_to_wire(self):
        version = BuildConfigVersion(
            user="user",
            name="demo",
            builds=(VersionBuild("docker", "docker", True),),
        )
        assert version.slug == "user/demo"
        assert version.to_wire() == {
            "builds": [{"name": "docker", "type": "docker", "artifact": True}]
        }

    def test_remote_config_slug(self):
        assert RemoteBuildConfig("user", "demo").slug == "user/demo"


class TestPushOutcome:
    def test_ok(self):
        outcome = PushOutcome.ok("user/demo")
        assert outcome.success is True
        assert outcome.exit_code == 0
        assert outcome.error is None

    def test_fail(self):
        outcome = PushOutcome.fail("user/demo", TransferFailedError("boom"))
        assert outcome.status == OutcomeStatus.FAILED
        assert outcome.exit_code == 1
        assert outcome.error.kind == ErrorKind.TRANSFER_FAILURE

    def test_cancelled(self):
        outcome = PushOutcome.cancelled("user/demo", UserCancelledError("ctrl-c"))
        assert outcome.status == OutcomeStatus.CANCELLED
        assert outcome.exit_code == 1
        assert outcome.error.kind == ErrorKind.USER_CANCELLATION
