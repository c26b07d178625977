from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"
    UNKNOWN = "unknown"


# Ordinal rank used by the severity sort; missing severities rank with unknown.
SEVERITY_RANK: Dict[str, int] = {
    "critical": 5,
    "high": 4,
    "medium": 3,
    "low": 2,
    "info": 1,
    "unknown": 0,
}


class SearchMode(str, Enum):
    LITERAL = "literal"
    REGEX = "regex"
    FUZZY = "fuzzy"


class Package(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    version: str = ""


class Reference(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    label: Optional[str] = None


class Finding(BaseModel):
    """A single reported vulnerability, immutable once ingested."""

    model_config = ConfigDict(frozen=True)

    id: str
    severity: Optional[Severity] = None
    package: Package = Field(default_factory=Package)
    component: str = ""
    cves: List[str] = Field(default_factory=list)
    cvss_score: Optional[float] = None
    fix_available: bool = False
    fixed_version: Optional[str] = None
    description: str = ""
    references: List[Reference] = Field(default_factory=list)
    path: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("severity", mode="before")
    @classmethod
    def normalize_severity(cls, v):
        """Accept any casing; empty or unrecognised values mean no severity."""
        if v is None or isinstance(v, Severity):
            return v
        text = str(v).strip().lower()
        if not text:
            return None
        try:
            return Severity(text)
        except ValueError:
            return None

    @field_validator("package", mode="before")
    @classmethod
    def coerce_package(cls, v):
        if v is None:
            return Package()
        return v

    @field_validator("cves", mode="before")
    @classmethod
    def coerce_cves(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return [str(c) for c in v if c]

    @field_validator("references", mode="before")
    @classmethod
    def coerce_references(cls, v):
        if not v:
            return []
        refs = []
        for ref in v:
            if isinstance(ref, str):
                refs.append({"url": ref})
            elif isinstance(ref, dict):
                refs.append(
                    {
                        "url": ref.get("url", ""),
                        "label": ref.get("label") or ref.get("name"),
                    }
                )
            else:
                refs.append(ref)
        return refs

    @property
    def severity_name(self) -> str:
        return self.severity.value if self.severity else ""

    @property
    def display_name(self) -> str:
        return self.package.name or self.component

    @property
    def fix_text(self) -> str:
        if not self.fix_available:
            return "none"
        return self.fixed_version or "available"


class ImageInfo(BaseModel):
    name: str
    version: Optional[str] = None

    @property
    def display(self) -> str:
        return f"{self.name}:{self.version}" if self.version else self.name


class FindingSet(BaseModel):
    """Normalized findings plus the scan summary shown in the header."""

    findings: List[Finding] = Field(default_factory=list)
    image: Optional[ImageInfo] = None
    scan_date: Optional[str] = None
    total_vulnerabilities: Optional[Dict[str, int]] = None

    def severity_totals(self) -> Dict[str, int]:
        """Totals supplied with the scan, or counted from the findings."""
        if self.total_vulnerabilities:
            totals = {s.value: 0 for s in Severity}
            for key, value in self.total_vulnerabilities.items():
                totals[str(key).lower()] = int(value or 0)
            return totals
        return severity_counts(self.findings)


def severity_counts(findings: List[Finding]) -> Dict[str, int]:
    counts = {s.value: 0 for s in Severity}
    for finding in findings:
        counts[finding.severity_name or "unknown"] += 1
    return counts
