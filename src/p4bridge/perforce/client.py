"""Typed async API over the p4 command line.

Each :class:`PerforceClient` method builds the arguments for one p4
subcommand, runs it through :class:`~p4bridge.perforce.service.PerforceService`
and parses the output. Operations differ in how they treat output on
stderr: most raise, some read it as an empty answer (``p4 opened`` prints
"file(s) not opened" there), and a few parse it.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from p4bridge.constants import DEFAULT_CONFIG_FILENAME
from p4bridge.exceptions import ClientRootError
from p4bridge.logging import get_logger
from p4bridge.perforce import changespec
from p4bridge.perforce.models import (
    Annotation,
    ChangeInfo,
    ChangelistResult,
    ChangelistStatus,
    ChangeSpec,
    DescribedChangelist,
    FileLogItem,
    FixedJob,
    FstatInfo,
    HaveFile,
    IntegratedRevision,
    OpenedFile,
    OpenedFileDetails,
    ShelvedChangeInfo,
    UnshelvedFiles,
    WhereFile,
)
from p4bridge.perforce.parsers import (
    order_by_paths,
    parse_annotate,
    parse_change_saved,
    parse_changes,
    parse_describe,
    parse_filelog,
    parse_fstat,
    parse_have,
    parse_info,
    parse_integrated,
    parse_opened,
    parse_set,
    parse_submitted,
    parse_unopened,
    parse_unshelve,
    parse_where,
    shelved_changes,
)
from p4bridge.perforce.service import PerforceService, raise_for_outcome
from p4bridge.runners.models import HardFailure, Ok, SoftFailure
from p4bridge.utils.batching import map_batches

__all__ = ["PerforceClient", "escape_path"]

logger = get_logger(__name__)

# Order matters: "%" must be escaped first
_ESCAPES = (("%", "%25"), ("@", "%40"), ("#", "%23"), ("*", "%2A"))


def escape_path(path: Path | str) -> str:
    """Escape the characters p4 treats as revision or wildcard syntax."""
    text = str(path)
    for char, escaped in _ESCAPES:
        text = text.replace(char, escaped)
    return text


class PerforceClient:
    """Async p4 operations for the workspace containing ``resource``.

    Args:
        service: Gateway used for every invocation.
        resource: Workspace folder (or a file in it) the commands run for.

    Example:
        ```python
        client = PerforceClient(service, Path("/home/me/depot"))
        spec = await client.get_change_spec()
        spec.description = "Fix the build"
        result = await client.input_change_spec(spec)
        ```
    """

    def __init__(self, service: PerforceService, resource: Path) -> None:
        self._service = service
        self._resource = resource

    @property
    def resource(self) -> Path:
        return self._resource

    async def _run(
        self,
        command: str,
        args: list[str] | None = None,
        *,
        input: str | None = None,
    ) -> str:
        return await self._service.execute_checked(
            self._resource, command, args, input=input
        )

    async def _run_tolerant(self, command: str, args: list[str] | None = None) -> str:
        """Run a command whose stderr output means "nothing found".

        Returns stdout for a clean run and an empty string for a soft
        failure. Hard failures still raise.
        """
        outcome = await self._service.execute(self._resource, command, args)
        if isinstance(outcome, SoftFailure):
            logger.debug(
                "p4_stderr_ignored", command=command, stderr=outcome.stderr.strip()
            )
            return ""
        return raise_for_outcome(command, outcome)

    # -------------------------------------------------------------------------
    # Change specifications
    # -------------------------------------------------------------------------

    async def get_change_spec(
        self, existing_changelist: str | None = None
    ) -> ChangeSpec:
        """Fetch the spec of a new changelist, or of an existing one."""
        args = ["-o"]
        if existing_changelist:
            args.append(existing_changelist)
        return changespec.decode(await self._run("change", args))

    async def input_change_spec(self, spec: ChangeSpec) -> ChangelistResult:
        """Create or update a changelist from *spec*."""
        output = await self._run("change", ["-i"], input=changespec.encode(spec))
        return ChangelistResult(raw_output=output, chnum=parse_change_saved(output))

    # -------------------------------------------------------------------------
    # File state
    # -------------------------------------------------------------------------

    async def get_fstat_info(
        self,
        depot_paths: Sequence[str],
        *,
        chnum: str | None = None,
        limit_to_shelved: bool = False,
        output_pending_record: bool = False,
    ) -> list[FstatInfo | None]:
        """Fetch fstat records for *depot_paths*, in input order.

        Paths are split into batches that run concurrently. Output on
        stderr (unknown files) is ignored; a path with no record maps to
        None.
        """
        if not depot_paths:
            return []

        flags: list[str] = []
        if chnum:
            flags.extend(["-e", chnum])
        if output_pending_record:
            flags.append("-Or")
        if limit_to_shelved:
            flags.append("-Rs")

        async def fetch(batch: list[str]) -> str:
            outcome = await self._service.execute(
                self._resource, "fstat", [*flags, *batch]
            )
            if isinstance(outcome, HardFailure):
                return raise_for_outcome("fstat", outcome)
            return outcome.stdout

        batch_size = self._service.settings.fstat_batch_size
        outputs = await map_batches(depot_paths, batch_size, fetch)
        logger.debug(
            "fstat_batches_completed", paths=len(depot_paths), batches=len(outputs)
        )
        records = parse_fstat("\n\n".join(outputs))
        return order_by_paths(records, depot_paths)

    async def get_opened_files(self, chnum: str | None = None) -> list[OpenedFile]:
        """List open files, optionally limited to one changelist."""
        args = ["-c", chnum] if chnum else []
        return parse_opened(await self._run_tolerant("opened", args))

    async def get_opened_file_details(
        self, files: Sequence[str]
    ) -> OpenedFileDetails:
        """Split *files* into open files and files p4 reports as not open."""
        outcome = await self._service.execute(self._resource, "opened", list(files))
        if isinstance(outcome, HardFailure):
            raise_for_outcome("opened", outcome)
        stderr = outcome.stderr if isinstance(outcome, SoftFailure) else ""
        return OpenedFileDetails(
            open=tuple(parse_opened(outcome.stdout)),
            unopen=tuple(parse_unopened(stderr)),
        )

    async def have(self, file: str) -> HaveFile | None:
        """Return the synced revision of *file*, or None if it is not synced."""
        return parse_have(await self._run_tolerant("have", [file]))

    async def have_file(self, file: str) -> bool:
        """True if the workspace has *file* synced."""
        outcome = await self._service.execute(self._resource, "have", [file])
        if isinstance(outcome, HardFailure):
            raise_for_outcome("have", outcome)
        return isinstance(outcome, Ok) and bool(outcome.stdout.strip())

    async def where(self, file: str) -> WhereFile | None:
        """Map *file* to depot, client and local syntax."""
        return parse_where(await self._run_tolerant("where", [file]))

    # -------------------------------------------------------------------------
    # Changelist operations
    # -------------------------------------------------------------------------

    async def submit_changelist(
        self,
        *,
        chnum: str | None = None,
        description: str | None = None,
        file: Path | str | None = None,
    ) -> ChangelistResult:
        """Submit a changelist, or a single file with a new description."""
        args: list[str] = []
        if chnum:
            args.extend(["-c", chnum])
        if description:
            args.extend(["-d", description])
        if file is not None:
            args.append(str(file))
        output = await self._run("submit", args)
        return ChangelistResult(raw_output=output, chnum=parse_submitted(output))

    async def revert(
        self,
        paths: Sequence[Path | str],
        *,
        chnum: str | None = None,
        unchanged: bool = False,
    ) -> str:
        args: list[str] = []
        if unchanged:
            args.append("-a")
        if chnum:
            args.extend(["-c", chnum])
        args.extend(escape_path(path) for path in paths)
        return await self._run("revert", args)

    async def shelve(
        self,
        paths: Sequence[str] = (),
        *,
        chnum: str | None = None,
        force: bool = False,
        delete: bool = False,
    ) -> str:
        args: list[str] = []
        if force:
            args.append("-f")
        if delete:
            args.append("-d")
        if chnum:
            args.extend(["-c", chnum])
        args.extend(paths)
        return await self._run("shelve", args)

    async def unshelve(
        self,
        shelved_chnum: str,
        *,
        to_chnum: str | None = None,
        force: bool = False,
        paths: Sequence[str] = (),
    ) -> UnshelvedFiles:
        """Unshelve files into a pending changelist.

        Returns the opened files plus the files that need resolving.
        """
        args: list[str] = []
        if force:
            args.append("-f")
        args.extend(["-s", shelved_chnum])
        if to_chnum:
            args.extend(["-c", to_chnum])
        args.extend(paths)
        return parse_unshelve(await self._run("unshelve", args))

    async def fix_job(
        self, chnum: str, job_id: str, *, remove_fix: bool = False
    ) -> str:
        args = ["-c", chnum]
        if remove_fix:
            args.append("-d")
        args.append(job_id)
        return await self._run("fix", args)

    async def reopen_files(self, chnum: str, files: Sequence[str]) -> str:
        """Move open files to another changelist (``"default"`` allowed)."""
        return await self._run("reopen", ["-c", chnum, *files])

    async def sync(self, paths: Sequence[str] = ()) -> str:
        return await self._run("sync", list(paths))

    async def add(
        self, paths: Sequence[Path | str], *, chnum: str | None = None
    ) -> str:
        return await self._open_for("add", paths, chnum)

    async def edit(
        self, paths: Sequence[Path | str], *, chnum: str | None = None
    ) -> str:
        return await self._open_for("edit", paths, chnum)

    async def delete(
        self, paths: Sequence[Path | str], *, chnum: str | None = None
    ) -> str:
        return await self._open_for("delete", paths, chnum)

    async def _open_for(
        self, command: str, paths: Sequence[Path | str], chnum: str | None
    ) -> str:
        args = ["-c", chnum] if chnum else []
        args.extend(escape_path(path) for path in paths)
        return await self._run(command, args)

    # -------------------------------------------------------------------------
    # Changelist queries
    # -------------------------------------------------------------------------

    async def get_changelists(
        self,
        *,
        client: str | None = None,
        status: ChangelistStatus | None = None,
    ) -> list[ChangeInfo]:
        args = ["-l"]
        if client:
            args.extend(["-c", client])
        if status is not None:
            args.extend(["-s", status.value])
        return parse_changes(await self._run("changes", args))

    async def describe(
        self,
        chnums: Sequence[str],
        *,
        omit_diffs: bool = True,
        shelved: bool = False,
    ) -> list[DescribedChangelist]:
        """Describe one or more changelists with a single invocation."""
        args: list[str] = []
        if shelved:
            args.append("-S")
        if omit_diffs:
            args.append("-s")
        args.extend(chnums)
        return parse_describe(await self._run("describe", args))

    async def get_shelved_files(
        self, chnums: Sequence[str]
    ) -> list[ShelvedChangeInfo]:
        """Shelved files of *chnums*; changelists with none are left out."""
        if not chnums:
            return []
        described = await self.describe(chnums, omit_diffs=True, shelved=True)
        return shelved_changes(described)

    async def get_fixed_jobs(self, chnum: str) -> list[FixedJob]:
        described = await self.describe([chnum], omit_diffs=True)
        return list(described[0].fixed_jobs) if described else []

    # -------------------------------------------------------------------------
    # Server and environment
    # -------------------------------------------------------------------------

    async def get_info(self) -> dict[str, str]:
        return parse_info(await self._run("info"))

    async def get_client_root(self) -> str:
        """Return the workspace root reported by ``p4 info``.

        Raises:
            ClientRootError: If the root is missing or ``*unknown*``.
        """
        root = (await self.get_info()).get("Client root")
        if not root or root == "*unknown*":
            raise ClientRootError()
        return root

    async def is_logged_in(self) -> bool:
        """True if ``p4 login -s`` succeeds cleanly; any failure means no."""
        outcome = await self._service.execute(self._resource, "login", ["-s"])
        return isinstance(outcome, Ok)

    async def login(self, password: str) -> str:
        return await self._run("login", [], input=password)

    async def logout(self) -> str:
        return await self._run("logout")

    async def get_environment(self, item: str, default: str = "") -> str:
        """Return a p4 variable from ``p4 set -q``, or *default*."""
        values = parse_set(await self._run("set", ["-q"]))
        return values.get(item, default)

    async def get_config_filename(self) -> str:
        """Return P4CONFIG, falling back to ``.p4config``."""
        return await self.get_environment("P4CONFIG", DEFAULT_CONFIG_FILENAME)

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    async def annotate(
        self,
        file: str,
        *,
        output_changelist: bool = False,
        output_user: bool = False,
        follow_branches: bool = False,
    ) -> list[Annotation]:
        args = ["-q"]
        if output_changelist:
            args.append("-c")
        if follow_branches:
            args.append("-i")
        if output_user:
            args.append("-u")
        args.append(file)
        output = await self._run("annotate", args)
        return parse_annotate(output, with_user=output_user)

    async def get_file_history(
        self, file: str, *, follow_branches: bool = False
    ) -> list[FileLogItem]:
        """Revision history of *file*, newest first.

        With ``follow_branches`` the history continues into the files it
        was branched, copied or moved from.
        """
        args = ["-l", "-t"]
        if follow_branches:
            args.append("-i")
        args.append(file)
        output = await self._run("filelog", args)
        return parse_filelog(output, follow_branches=follow_branches, file=file)

    async def integrated(
        self,
        file: str | None = None,
        *,
        into_only: bool = False,
        starting_chnum: str | None = None,
    ) -> list[IntegratedRevision]:
        args: list[str] = []
        if starting_chnum:
            args.extend(["-s", starting_chnum])
        if into_only:
            args.append("--into-only")
        if file:
            args.append(file)
        return parse_integrated(await self._run_tolerant("integrated", args))
