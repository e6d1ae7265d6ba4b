MAJOR = 1
MINOR = 0
PATCH = 0
PRE_RELEASE = ""
BUILD_METADATA = ""


def version_string() -> str:
    """Semantic version of the plugin, e.g. v1.0.0 or v1.1.0-devel+abc123."""
    v = f"v{MAJOR}.{MINOR}.{PATCH}"
    if PRE_RELEASE:
        v += "-" + PRE_RELEASE
        if "devel" in PRE_RELEASE and BUILD_METADATA:
            v += "+" + BUILD_METADATA
    return v
