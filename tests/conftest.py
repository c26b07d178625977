import pytest

from vulnview.utils.schema import Finding


def _make_finding(id, severity=None, package="", component="", cves=None, path="",
                  description="", fix_available=False, fixed_version=None, cvss_score=None,
                  version=""):
    return Finding(
        id=id,
        severity=severity,
        package={"name": package, "version": version},
        component=component,
        cves=cves or [],
        cvss_score=cvss_score,
        fix_available=fix_available,
        fixed_version=fixed_version,
        description=description,
        path=path,
    )


@pytest.fixture
def make_finding():
    return _make_finding


@pytest.fixture
def sample_findings():
    """Five findings covering every stage of the filter pipeline."""
    return [
        _make_finding(
            "f1", "critical", package="openssl", component="libssl", version="1.1.1",
            cves=["CVE-2023-0286"], path="/usr/lib/libssl.so.1.1",
            description="Type confusion in X.400 address processing",
            fix_available=True, fixed_version="1.1.1t", cvss_score=7.4,
        ),
        _make_finding(
            "f2", "HIGH", package="curl", version="7.88.0",
            cves=["CVE-2023-38545", "CVE-2023-38546"], path="/usr/bin/curl",
            description="SOCKS5 heap buffer overflow", cvss_score=9.8,
        ),
        _make_finding(
            "f3", "high", package="zlib", version="1.2.11",
            cves=["CVE-2022-37434"], path="/lib/libz.so.1",
            description="Heap-based buffer over-read in inflate",
            fix_available=True, fixed_version="1.2.12", cvss_score=10,
        ),
        _make_finding(
            "f4", "Low", component="busybox", cves=[], path="/bin/busybox",
            description="Minor information disclosure",
        ),
        _make_finding(
            "f5", None, package="left-pad", version="1.0.0",
            description="Unmaintained package",
        ),
    ]


def ids(findings):
    return [f.id for f in findings]


@pytest.fixture
def finding_ids():
    return ids
