"""Matrix components: the tools and libraries checked out, built and tested.

Each component is a source checkout managed by one of two version control
tools. The tools differ only in their command vocabulary, which lives in
``KIND_COMMANDS``; old versions that need help to build get a fixup hook
that runs right after checkout.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, Mapping, Optional, Tuple

from . import commands
from .config import Config, ComponentConfig
from .errors import BuildFailure, SetupFailure
from .versions import WILDCARD, check_version

# Called as hook(checkout_dir, raw_version) after every checkout
FixupHook = Callable[[Path, str], None]


class ToolKind(Enum):
    """Version control tool managing a component's sources."""
    HG = "hg"
    GIT = "git"


@dataclass(frozen=True)
class KindCommands:
    """Subcommands of one version control tool."""
    clone: Tuple[str, ...]
    # Discard local changes and move to a revision
    checkout: Tuple[str, ...]
    # Apply a patch to the working tree without committing
    apply_patch: Tuple[str, ...]
    # Revision name meaning "latest"
    latest: str


KIND_COMMANDS: Dict[ToolKind, KindCommands] = {
    ToolKind.HG: KindCommands(
        clone=("clone", "--quiet"),
        checkout=("update", "--clean", "--quiet"),
        apply_patch=("import", "--no-commit", "--quiet"),
        latest="tip",
    ),
    ToolKind.GIT: KindCommands(
        clone=("clone", "--quiet"),
        checkout=("checkout", "--force", "--quiet"),
        apply_patch=("apply",),
        latest=WILDCARD,
    ),
}


def infer_kind(url: str) -> ToolKind:
    """Guess the version control tool from a repository URL."""
    if url.startswith(("git://", "git@", "git+")):
        return ToolKind.GIT
    if url.rstrip("/").endswith(".git") or "github.com" in url:
        return ToolKind.GIT
    return ToolKind.HG


@dataclass(frozen=True)
class Component:
    """One participant of the matrix."""
    id: str
    url: str
    kind: ToolKind
    # Shared working root; every component checks out into root/id
    root: Path
    version_format: Optional[str] = None
    checkout_fix: Optional[FixupHook] = None
    # Installs executables into the build bin/ directory
    scripts: bool = False

    @property
    def dir(self) -> Path:
        return self.root / self.id

    @property
    def tool_commands(self) -> KindCommands:
        return KIND_COMMANDS[self.kind]

    def resolve_version(self, version: str) -> str:
        """Translate a matrix version into a revision the tool understands."""
        if version == WILDCARD:
            return self.tool_commands.latest
        if self.version_format:
            return self.version_format.format(version)
        return version

    def clone(self) -> None:
        """Clone the component's repository into its working directory.

        Raises:
            SetupFailure: If the clone command fails.
        """
        print(f"Cloning {self.url} to {self.dir}...")
        commands.check_cmd(
            [self.kind.value, *self.tool_commands.clone, self.url, str(self.dir)],
            error=SetupFailure,
        )

    def checkout(self, version: str) -> None:
        """Check out ``version``, discarding local changes, then run the fixup hook.

        Raises:
            BuildFailure: If the checkout command fails.
        """
        revision = self.resolve_version(version)
        print(f"Checking out {self.id} {revision}...")
        commands.check_cmd(
            [self.kind.value, *self.tool_commands.checkout, revision],
            cwd=self.dir,
            error=BuildFailure,
        )
        # A fix that does not apply to this version is expected, not an error
        if self.checkout_fix is not None:
            try:
                self.checkout_fix(self.dir, version)
            except Exception as e:
                print(f"  Fixup for {self.id} {version} not applied: {e}")

    def build(self, build_dir: Path, python: str = "python2") -> None:
        """Build the component's modules (and scripts) into ``build_dir``.

        Raises:
            BuildFailure: If setup.py fails.
        """
        lib_dir = str(build_dir / "python")
        cmd = [
            python, "setup.py", "--quiet",
            "build_py", "--build-lib", lib_dir,
            "build_ext", "--build-lib", lib_dir,
        ]
        if self.scripts:
            cmd.extend(["build_scripts", "--build-dir", str(build_dir / "bin")])
        print(f"Building {self.id}...")
        commands.check_cmd(cmd, cwd=self.dir, error=BuildFailure)


# ============================================================================
# Checkout fixups
# ============================================================================

def _in_range(version: str, since: str, until: str) -> bool:
    try:
        if since and not check_version(version, since):
            return False
        if until and check_version(version, until):
            return False
    except ValueError:
        # Revisions that are not dotted versions (hashes, branch names)
        return False
    return True


def write_version_marker(relpath: str) -> FixupHook:
    """Pin the checked-out version into ``relpath`` so setup.py need not ask the tool.

    The marker is removed for the wildcard, letting the build derive the
    version from the latest revision itself.
    """
    def fix(checkout_dir: Path, version: str) -> None:
        marker = checkout_dir / relpath
        try:
            if version == WILDCARD:
                marker.unlink(missing_ok=True)
            else:
                marker.write_text(f'version = "{version}"\n')
        except OSError as e:
            print(f"  Version marker not written for {version}: {e}")
    return fix


def apply_patch(kind: ToolKind, patch: Path, since: str = "", until: str = "") -> FixupHook:
    """Apply ``patch`` to checkouts of versions in ``[since, until)``."""
    apply_cmd = KIND_COMMANDS[kind].apply_patch

    def fix(checkout_dir: Path, version: str) -> None:
        if not _in_range(version, since, until):
            return
        result = commands.run_cmd([kind.value, *apply_cmd, str(patch)], cwd=checkout_dir)
        if result.returncode != 0:
            print(f"  {patch.name} does not apply to {version}, continuing")
    return fix


def chain_fixes(*hooks: FixupHook) -> Optional[FixupHook]:
    """Combine hooks into one that runs them in order; None if there are none."""
    if not hooks:
        return None
    if len(hooks) == 1:
        return hooks[0]

    def fix(checkout_dir: Path, version: str) -> None:
        for hook in hooks:
            hook(checkout_dir, version)
    return fix


# ============================================================================
# Registry
# ============================================================================

class ComponentRegistry(Mapping[str, Component]):
    """Read-only, ordered collection of components keyed by id.

    The first component is the primary one, the axis single-version runs
    move along.
    """

    def __init__(self, components: Iterable[Component]):
        self._components: Dict[str, Component] = {}
        for component in components:
            if component.id in self._components:
                raise ValueError(f"Duplicate component id: {component.id}")
            self._components[component.id] = component

    def __getitem__(self, component_id: str) -> Component:
        return self._components[component_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._components)

    def __len__(self) -> int:
        return len(self._components)

    def __repr__(self) -> str:
        return f"ComponentRegistry({', '.join(self._components)})"

    @property
    def primary(self) -> Optional[Component]:
        return next(iter(self._components.values()), None)


def make_component(component_id: str, info: ComponentConfig, root: Path) -> Component:
    """Create a component from its configuration."""
    kind = ToolKind(info.kind) if info.kind else infer_kind(info.url)
    hooks = []
    if info.version_marker:
        hooks.append(write_version_marker(info.version_marker))
    for patch in info.patches:
        hooks.append(apply_patch(kind, patch.path, patch.since, patch.until))
    return Component(
        id=component_id,
        url=info.url,
        kind=kind,
        root=Path(root),
        version_format=info.version_format or None,
        checkout_fix=chain_fixes(*hooks),
        scripts=info.scripts,
    )


def build_registry(config: Config, root: Optional[Path] = None) -> ComponentRegistry:
    """Build the registry of configured components.

    Args:
        config: Configuration object.
        root: Working root for the checkouts (default: config.cache_dir).
    """
    root = Path(root) if root is not None else config.cache_dir
    return ComponentRegistry(
        make_component(component_id, info, root)
        for component_id, info in config.components.items()
    )
