# src/wg_vlan/ini.py
"""
Fichiers de configuration WireGuard (format wg-quick).

Une section [Interface] suivie de zéro ou plusieurs sections [Peer], chaque
section pouvant porter un commentaire (ex "# VLAN Client: laptop") sur la
ligne qui précède son en-tête.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .exceptions import ConfigParseError

INTERFACE = "Interface"
PEER = "Peer"


@dataclass
class Section:
    kind: str
    comment: Optional[str] = None
    values: Dict[str, str] = field(default_factory=dict)

    @property
    def name(self) -> str:
        comment = self.comment or ""
        for token in comment.split():
            key, sep, value = token.partition("=")
            if sep and key == "name":
                return value
        # "VLAN Client: laptop"
        _, sep, value = comment.partition(": ")
        return value.strip() if sep else ""

    @name.setter
    def name(self, value: str) -> None:
        self.comment = f"name={value}"

    def set(self, key: str, value) -> None:
        self.values[key] = "" if value is None else str(value)

    def prune(self) -> None:
        self.values = {k: v for k, v in self.values.items() if v != ""}

    def render(self) -> List[str]:
        lines = []
        if self.comment:
            lines.append(f"# {self.comment}")
        lines.append(f"[{self.kind}]")
        for key, value in self.values.items():
            if value == "":
                continue
            lines.append(f"{key} = {value}")
        return lines


class WireguardConfig:
    def __init__(self, sections: Optional[Iterable[Section]] = None):
        self.sections: List[Section] = list(sections or [])

    @property
    def interface(self) -> Section:
        for section in self.sections:
            if section.kind == INTERFACE:
                return section
        section = Section(INTERFACE)
        self.sections.insert(0, section)
        return section

    @property
    def peers(self) -> List[Section]:
        return [s for s in self.sections if s.kind == PEER]

    def add_section(self, kind: str, comment: Optional[str] = None) -> Section:
        section = Section(kind, comment=comment)
        self.sections.append(section)
        return section

    def peer(self, name: str) -> Optional[Section]:
        for section in self.peers:
            if section.name == name:
                return section
        return None

    def prune(self) -> None:
        """
        Supprime les clés vides, puis les sections [Peer] devenues vides.
        """
        for section in self.sections:
            section.prune()
        self.sections = [s for s in self.sections if s.kind != PEER or s.values]

    def render(self) -> str:
        lines: List[str] = []
        for section in self.sections:
            lines.extend(section.render())
            lines.append("")  # blank
        return "\n".join(lines).strip() + "\n"

    @classmethod
    def parse(cls, text: str) -> "WireguardConfig":
        conf = cls()
        current: Optional[Section] = None
        comments: List[str] = []

        for lineno, raw in enumerate(text.splitlines(), start=1):
            line = raw.strip()
            if not line:
                comments = []
                continue

            if line[0] in "#;":
                comments.append(line[1:].strip())
                continue

            if line.startswith("[") and line.endswith("]"):
                current = conf.add_section(line[1:-1].strip(), comment=" ".join(comments) or None)
                comments = []
                continue

            key, sep, value = line.partition("=")
            if not sep:
                raise ConfigParseError(f"line {lineno}: expected 'Key = value', got '{line}'")
            if current is None:
                raise ConfigParseError(f"line {lineno}: key '{key.strip()}' outside of any section")
            current.set(key.strip(), value.strip())
            comments = []

        return conf
