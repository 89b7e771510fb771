"""Content resolution types."""

from dataclasses import dataclass, field

from program_engine.models.content import DayContent, Layer, WeekContent


@dataclass(frozen=True)
class ContentScope:
    """Which layers a read or write addresses.

    Template scope reads and writes only the template. Cohort scope reads
    template and cohort layers and writes the cohort layer. Client scope
    reads every layer that applies to the enrollment and writes the client
    layer.
    """

    layer: Layer
    cohort_id: str | None = None
    enrollment_id: str | None = None

    @classmethod
    def template(cls) -> "ContentScope":
        return cls(layer=Layer.TEMPLATE)

    @classmethod
    def for_cohort(cls, cohort_id: str) -> "ContentScope":
        return cls(layer=Layer.COHORT, cohort_id=cohort_id)

    @classmethod
    def for_client(cls, enrollment_id: str) -> "ContentScope":
        return cls(layer=Layer.CLIENT, enrollment_id=enrollment_id)


@dataclass(frozen=True)
class EffectiveDay:
    """Merged content of a day with per-field provenance.

    Attributes:
        program_id: Program the day belongs to
        day_index: 1-based day index
        content: Effective content; fields no layer sets stay None
        provenance: Field name -> layer that supplied the value
        scope: Scope the day was resolved for
    """

    program_id: str
    day_index: int
    content: DayContent
    provenance: dict[str, Layer] = field(default_factory=dict)
    scope: ContentScope = field(default_factory=ContentScope.template)

    @property
    def customized_fields(self) -> list[str]:
        """Fields supplied by a cohort or client override."""
        return [name for name, layer in self.provenance.items() if layer != Layer.TEMPLATE]


@dataclass(frozen=True)
class EffectiveWeek:
    """Merged content of a week with per-field provenance."""

    program_id: str
    week_number: int
    content: WeekContent
    provenance: dict[str, Layer] = field(default_factory=dict)
    scope: ContentScope = field(default_factory=ContentScope.template)

    @property
    def customized_fields(self) -> list[str]:
        return [name for name, layer in self.provenance.items() if layer != Layer.TEMPLATE]
