"""
Push workflow: template to remote build configuration version.

Steps: load template -> plan archive and upload -> resolve remote
configuration -> create archive -> launch transfer -> wait for one outcome.
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import AsyncContextManager, Callable, Optional, Union

from rich.console import Console
from rich.markup import escape

from .archive import TarArchiveBuilder, build_archive_options, resolve_archive_path
from .cli_progress import TransferProgress, render_untracked_warning
from .config import PushConfig
from .errors import PushError, UserCancelledError
from .models import PushOutcome, PushSpec
from .orchestrator import UploadOrchestrator
from .plan import UploadPlanBuilder
from .protocols import IArchiveBuilder, IRemoteClient
from .services.api_client import BuildServiceClient
from .template import Template, load_template
from .waiter import CancellableWaiter, interrupt_on_sigint

logger = logging.getLogger(__name__)

ClientFactory = Callable[[PushConfig], AsyncContextManager[IRemoteClient]]


def default_client_factory(config: PushConfig) -> BuildServiceClient:
    return BuildServiceClient(
        config.address,
        token=config.token,
        timeout=config.timeout,
        chunk_size=config.chunk_size,
    )


class PushCommand:
    """
    Pushes a template and its supporting files to the remote build service.

    Usage:
        command = PushCommand(PushConfig.from_env())
        outcome = await command.run(Path("template.json"), message="first")
        raise SystemExit(outcome.exit_code)
    """

    def __init__(
        self,
        config: Optional[PushConfig] = None,
        client_factory: ClientFactory = default_client_factory,
        archive_builder: Optional[IArchiveBuilder] = None,
        plan_builder: Optional[UploadPlanBuilder] = None,
        console: Optional[Console] = None,
        err_console: Optional[Console] = None,
        show_progress: bool = True,
    ):
        self._config = config or PushConfig()
        self._client_factory = client_factory
        self._archive_builder = archive_builder or TarArchiveBuilder()
        self._plan_builder = plan_builder or UploadPlanBuilder()
        self._console = console or Console()
        self._err_console = err_console or Console(stderr=True)
        self._show_progress = show_progress

    async def run(
        self,
        template_path: Union[str, Path],
        token: Optional[str] = None,
        message: Optional[str] = None,
        address: Optional[str] = None,
        interrupt: Optional[asyncio.Event] = None,
    ) -> PushOutcome:
        """Run one push and report its outcome; never raises PushError."""
        slug = ""
        try:
            template = load_template(template_path)
            spec = template.to_push_spec(token=token, message=message)
            slug = spec.slug
            await self._push(template, spec, address, interrupt)
            outcome = PushOutcome.ok(slug)
        except UserCancelledError as exc:
            outcome = PushOutcome.cancelled(slug, exc)
        except PushError as exc:
            outcome = PushOutcome.fail(slug, exc)

        self._report(outcome)
        return outcome

    async def _push(
        self,
        template: Template,
        spec: PushSpec,
        address: Optional[str],
        interrupt: Optional[asyncio.Event],
    ) -> None:
        config = self._config.with_overrides(address=address or spec.address, token=spec.token)

        archive_path = resolve_archive_path(spec.template_path, spec.base_dir)
        options = build_archive_options(spec)

        plan = self._plan_builder.build(
            spec.slug,
            template.builders,
            template.post_processors,
            spec.message,
        )
        if plan.untracked_builds:
            render_untracked_warning(self._err_console, plan.untracked_builds)

        async with self._client_factory(config) as client:
            orchestrator = UploadOrchestrator(client)
            resolved = await orchestrator.resolve(plan)

            logger.debug(f"Archiving {archive_path}")
            archive = await asyncio.to_thread(self._archive_builder.create, archive_path, options)
            with archive:
                progress = None
                if self._show_progress:
                    progress = TransferProgress(self._err_console, spec.slug, archive.size)
                try:
                    signals = orchestrator.launch(
                        resolved,
                        archive,
                        progress.get_callback() if progress else None,
                    )
                    if interrupt is not None:
                        await CancellableWaiter(interrupt).wait(signals)
                    else:
                        with interrupt_on_sigint() as sigint:
                            await CancellableWaiter(sigint).wait(signals)
                finally:
                    if progress:
                        progress.stop()

    def _report(self, outcome: PushOutcome) -> None:
        if outcome.success:
            self._console.print(f"Push successful to '{escape(outcome.slug)}'")
            return

        assert outcome.error is not None
        self._err_console.print(f"[red]Error[/red] {escape(outcome.error.describe())}")
