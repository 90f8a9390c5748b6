"""Upload plan assembly: build descriptors and version metadata."""
import logging
from typing import AbstractSet, Any, Dict, Iterable, List, Optional

from .models import BuildDescriptor, BuilderSpec, PostProcessorSpec, UploadPlan

logger = logging.getLogger(__name__)

DEFAULT_PUBLISHING_TYPES = frozenset({"atlas"})
MESSAGE_METADATA_KEY = "message"

UNTRACKED_BUILDS_WARNING = (
    "One or more of the builds in this template does not have a publishing "
    "post-processor. Artifacts from these builds will not appear in the remote "
    "artifact registry. This is just a warning: the remote service will still "
    "build the template and assume other post-processors send the artifacts "
    "where they need to go."
)


class UploadPlanBuilder:
    """
    Builds the UploadPlan for a template.

    A build is artifacted when at least one publishing post-processor runs
    for it (does not skip it).
    """

    def __init__(self, publishing_types: AbstractSet[str] = DEFAULT_PUBLISHING_TYPES):
        self._publishing_types = frozenset(publishing_types)

    def build(
        self,
        slug: str,
        builders: Iterable[BuilderSpec],
        post_processors: Iterable[PostProcessorSpec],
        message: Optional[str] = None,
    ) -> UploadPlan:
        publishing = [pp for pp in post_processors if pp.type in self._publishing_types]

        builds: Dict[str, BuildDescriptor] = {}
        for builder in builders:
            builds[builder.name] = BuildDescriptor(
                name=builder.name,
                builder_type=builder.type,
                has_artifact_post_processor=any(not pp.skip(builder.name) for pp in publishing),
            )

        metadata: Dict[str, Any] = {}
        if message:
            metadata[MESSAGE_METADATA_KEY] = message

        plan = UploadPlan(slug=slug, builds=builds, metadata=metadata)
        untracked = plan.untracked_builds
        if untracked:
            logger.warning(f"{UNTRACKED_BUILDS_WARNING} Builds: {', '.join(untracked)}")
        return plan


def format_untracked_warning(untracked: List[str]) -> str:
    return f"{UNTRACKED_BUILDS_WARNING}\n\nBuilds: {', '.join(untracked)}"
