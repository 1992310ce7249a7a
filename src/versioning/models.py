"""Data models for package manifests and version resolution."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ResolvedVersion:
    """Outcome of version resolution for one package.

    ``source`` names the precedence tier: ``alias:<name>→<real>``,
    ``workspace-resolution``, ``parent-<pkg>``, ``lock-file``,
    ``package-json``, or ``fetched`` when nothing matched.
    """
    version: Optional[str]
    source: str

    @property
    def resolved(self) -> bool:
        return self.version is not None


def _str_map(value: Any) -> Dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(k): v for k, v in value.items() if isinstance(v, str)}


@dataclass
class PackageManifest:
    """The subset of a package.json the resolver cares about."""
    name: Optional[str] = None
    version: Optional[str] = None
    dependencies: Dict[str, str] = field(default_factory=dict)
    peer_dependencies: Dict[str, str] = field(default_factory=dict)
    dev_dependencies: Dict[str, str] = field(default_factory=dict)
    resolutions: Dict[str, str] = field(default_factory=dict)
    overrides: Dict[str, str] = field(default_factory=dict)
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PackageManifest":
        if not isinstance(data, dict):
            data = {}
        name = data.get("name")
        version = data.get("version")
        return cls(
            name=name if isinstance(name, str) else None,
            version=version if isinstance(version, str) else None,
            dependencies=_str_map(data.get("dependencies")),
            peer_dependencies=_str_map(data.get("peerDependencies")),
            dev_dependencies=_str_map(data.get("devDependencies")),
            resolutions=_str_map(data.get("resolutions")),
            overrides=_str_map(data.get("overrides")),
            raw=dict(data),
        )

    @classmethod
    def from_json(cls, text: str) -> "PackageManifest":
        """Parse manifest text; raises ValueError on invalid JSON."""
        return cls.from_dict(json.loads(text))

    def to_json(self) -> str:
        return json.dumps(self.raw, indent=2)
