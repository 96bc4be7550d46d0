"""Record, outcome and configuration data types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from kbcore.errors import ValidationError


class _StrEnum(str, Enum):
    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: Any):
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f"invalid {cls.__name__} value: {value!r}") from None


class RecordType(_StrEnum):
    CONVENTION = "convention"
    PATTERN = "pattern"
    FAILURE = "failure"
    DECISION = "decision"
    REFERENCE = "reference"
    GUIDE = "guide"


class Classification(_StrEnum):
    FOUNDATIONAL = "foundational"
    TACTICAL = "tactical"
    OBSERVATIONAL = "observational"


class OutcomeStatus(_StrEnum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILURE = "failure"


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


def _require(data: dict[str, Any], key: str) -> Any:
    if key not in data or data[key] is None:
        raise ValidationError(f'missing field "{key}"')
    return data[key]


def _as_mapping(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ValidationError(f"{what} must be an object")
    return data


@dataclass
class Outcome:
    """One recorded application of a record."""

    status: OutcomeStatus
    duration: int | None = None
    test_results: str | None = None
    agent: str | None = None
    notes: str | None = None
    recorded_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "status": self.status.value,
                "duration": self.duration,
                "test_results": self.test_results,
                "agent": self.agent,
                "notes": self.notes,
                "recorded_at": self.recorded_at,
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Outcome:
        data = _as_mapping(data, "outcome")
        return cls(
            status=OutcomeStatus.parse(_require(data, "status")),
            duration=data.get("duration"),
            test_results=data.get("test_results"),
            agent=data.get("agent"),
            notes=data.get("notes"),
            recorded_at=data.get("recorded_at"),
        )


@dataclass
class Evidence:
    """Pointers backing a record: commit, date, issue or file."""

    commit: str | None = None
    date: str | None = None
    issue: str | None = None
    file: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {"commit": self.commit, "date": self.date, "issue": self.issue, "file": self.file}
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Evidence:
        data = _as_mapping(data, "evidence")
        return cls(
            commit=data.get("commit"),
            date=data.get("date"),
            issue=data.get("issue"),
            file=data.get("file"),
        )


@dataclass(kw_only=True)
class ExpertiseRecord:
    """Common fields of every record type."""

    record_type: ClassVar[RecordType]
    _text_fields: ClassVar[tuple[str, ...]]
    _key_field: ClassVar[str]

    classification: Classification
    recorded_at: str
    id: str | None = None
    evidence: Evidence | None = None
    tags: list[str] | None = None
    relates_to: list[str] | None = None
    supersedes: list[str] | None = None
    outcomes: list[Outcome] | None = None

    # Only pattern and reference records carry files.
    files = None

    @property
    def unique_key(self) -> str:
        """The field that identifies the record within its type."""
        return getattr(self, self._key_field)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.record_type.value, "id": self.id}
        for name in self._text_fields:
            data[name] = getattr(self, name)
        if "files" in self.__dataclass_fields__:
            data["files"] = list(self.files) if self.files is not None else None
        data["classification"] = self.classification.value
        data["recorded_at"] = self.recorded_at
        data["evidence"] = self.evidence.to_dict() if self.evidence is not None else None
        data["tags"] = list(self.tags) if self.tags is not None else None
        data["relates_to"] = list(self.relates_to) if self.relates_to is not None else None
        data["supersedes"] = list(self.supersedes) if self.supersedes is not None else None
        data["outcomes"] = (
            [o.to_dict() for o in self.outcomes] if self.outcomes is not None else None
        )
        return _drop_none(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExpertiseRecord:
        data = _as_mapping(data, "record")
        record_cls = _RECORD_CLASSES[RecordType.parse(_require(data, "type"))]
        kwargs: dict[str, Any] = {
            name: _require(data, name) for name in record_cls._text_fields
        }
        if "files" in record_cls.__dataclass_fields__:
            kwargs["files"] = data.get("files")
        evidence = data.get("evidence")
        outcomes = data.get("outcomes")
        return record_cls(
            classification=Classification.parse(_require(data, "classification")),
            recorded_at=_require(data, "recorded_at"),
            id=data.get("id"),
            evidence=Evidence.from_dict(evidence) if evidence is not None else None,
            tags=data.get("tags"),
            relates_to=data.get("relates_to"),
            supersedes=data.get("supersedes"),
            outcomes=[Outcome.from_dict(o) for o in outcomes] if outcomes is not None else None,
            **kwargs,
        )


@dataclass(kw_only=True)
class Convention(ExpertiseRecord):
    record_type: ClassVar[RecordType] = RecordType.CONVENTION
    _text_fields: ClassVar[tuple[str, ...]] = ("content",)
    _key_field: ClassVar[str] = "content"

    content: str


@dataclass(kw_only=True)
class Pattern(ExpertiseRecord):
    record_type: ClassVar[RecordType] = RecordType.PATTERN
    _text_fields: ClassVar[tuple[str, ...]] = ("name", "description")
    _key_field: ClassVar[str] = "name"

    name: str
    description: str
    files: list[str] | None = None


@dataclass(kw_only=True)
class Failure(ExpertiseRecord):
    record_type: ClassVar[RecordType] = RecordType.FAILURE
    _text_fields: ClassVar[tuple[str, ...]] = ("description", "resolution")
    _key_field: ClassVar[str] = "description"

    description: str
    resolution: str


@dataclass(kw_only=True)
class Decision(ExpertiseRecord):
    record_type: ClassVar[RecordType] = RecordType.DECISION
    _text_fields: ClassVar[tuple[str, ...]] = ("title", "rationale")
    _key_field: ClassVar[str] = "title"

    title: str
    rationale: str


@dataclass(kw_only=True)
class Reference(ExpertiseRecord):
    record_type: ClassVar[RecordType] = RecordType.REFERENCE
    _text_fields: ClassVar[tuple[str, ...]] = ("name", "description")
    _key_field: ClassVar[str] = "name"

    name: str
    description: str
    files: list[str] | None = None


@dataclass(kw_only=True)
class Guide(ExpertiseRecord):
    record_type: ClassVar[RecordType] = RecordType.GUIDE
    _text_fields: ClassVar[tuple[str, ...]] = ("name", "description")
    _key_field: ClassVar[str] = "name"

    name: str
    description: str


_RECORD_CLASSES: dict[RecordType, type[ExpertiseRecord]] = {
    cls.record_type: cls for cls in (Convention, Pattern, Failure, Decision, Reference, Guide)
}


@dataclass
class Governance:
    """Entry-count thresholds for a domain."""

    max_entries: int = 100
    warn_entries: int = 150
    hard_limit: int = 200

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_entries": self.max_entries,
            "warn_entries": self.warn_entries,
            "hard_limit": self.hard_limit,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Governance:
        data = _as_mapping(data, "governance")
        default = cls()
        return cls(
            max_entries=int(data.get("max_entries", default.max_entries)),
            warn_entries=int(data.get("warn_entries", default.warn_entries)),
            hard_limit=int(data.get("hard_limit", default.hard_limit)),
        )


@dataclass
class ShelfLife:
    """Age in days after which non-foundational records turn stale."""

    tactical: int = 14
    observational: int = 30

    def to_dict(self) -> dict[str, Any]:
        return {"tactical": self.tactical, "observational": self.observational}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ShelfLife:
        data = _as_mapping(data, "shelf_life")
        default = cls()
        return cls(
            tactical=int(data.get("tactical", default.tactical)),
            observational=int(data.get("observational", default.observational)),
        )


@dataclass
class KbConfig:
    """Contents of kb.config.yaml."""

    version: str = "1"
    domains: list[str] = field(default_factory=list)
    governance: Governance = field(default_factory=Governance)
    shelf_life: ShelfLife = field(default_factory=ShelfLife)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "domains": list(self.domains),
            "governance": self.governance.to_dict(),
            "shelf_life": self.shelf_life.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> KbConfig:
        data = _as_mapping(data, "config")
        governance = data.get("governance")
        shelf_life = data.get("shelf_life")
        domains = data.get("domains") or []
        return cls(
            version=str(data.get("version", "1")),
            domains=[str(d) for d in domains],
            governance=Governance.from_dict(governance) if governance is not None else Governance(),
            shelf_life=ShelfLife.from_dict(shelf_life) if shelf_life is not None else ShelfLife(),
        )