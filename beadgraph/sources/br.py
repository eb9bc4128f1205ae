"""br CLI data source."""

import asyncio
import contextlib
import logging

from pydantic import TypeAdapter, ValidationError

from beadgraph.models import Bead, GraphView
from beadgraph.settings import BeadGraphSettings
from beadgraph.sources.base import BeadSource, BeadSourceError

logger = logging.getLogger(__name__)

_BEADS = TypeAdapter(list[Bead])
_LABELS = TypeAdapter(list[str])


class BrSource(BeadSource):
    def __init__(self, settings: BeadGraphSettings) -> None:
        self._command = settings.br_command
        self._workdir = settings.workdir

    async def _run(self, *args: str) -> bytes:
        argv = " ".join((self._command, *args))
        try:
            proc = await asyncio.create_subprocess_exec(
                self._command,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self._workdir,
            )
        except FileNotFoundError as exc:
            raise BeadSourceError(f"{self._command} not found. Install br or set br_command in your profile.") from exc

        try:
            stdout, stderr = await proc.communicate()
        except asyncio.CancelledError:
            # Don't leave a br child running after the caller gave up on it
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
            raise

        if proc.returncode != 0:
            detail = stderr.decode(errors="replace").strip() or f"exit status {proc.returncode}"
            raise BeadSourceError(f"{argv} failed: {detail}")
        logger.debug("ran %s (%d bytes)", argv, len(stdout))
        return stdout

    async def list_beads(self, view: GraphView) -> list[Bead]:
        if view is GraphView.CLOSED:
            output = await self._run("list", "--status", "closed", "--json")
        else:
            output = await self._run("list", "--json")
        if not output.strip():
            return []
        try:
            return _BEADS.validate_json(output)
        except ValidationError as exc:
            raise BeadSourceError(f"failed to parse bead data: {exc}") from exc

    async def show_bead(self, bead_id: str) -> Bead:
        output = await self._run("show", bead_id, "--json")
        if not output.strip():
            raise BeadSourceError(f"br show {bead_id}: empty response")
        # br show --json returns an array with one element
        try:
            beads = _BEADS.validate_json(output)
        except ValidationError as exc:
            raise BeadSourceError(f"failed to parse bead data: {exc}") from exc
        if not beads:
            raise BeadSourceError(f"bead '{bead_id}' not found")
        return beads[0]

    async def list_labels(self, bead_id: str) -> list[str]:
        output = await self._run("label", "list", bead_id, "--json")
        if not output.strip():
            return []
        try:
            return _LABELS.validate_json(output)
        except ValidationError as exc:
            raise BeadSourceError(f"failed to parse labels: {exc}") from exc
