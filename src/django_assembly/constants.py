# Attributes set on (or read from) component marker elements
COMPONENT_ID_ATTR = "component-id"
COMPONENT_DATA_ID_ATTR = "component-data-id"
COMPONENT_NAME_ATTR = "component-name"
COMPONENT_VIEW_ATTR = "component-view-name"
COMPONENT_URL_ATTR = "component-url"
COMPONENT_NEST_ATTR = "component-nest-level"

# Assets that belong to a component and get re-pathed / relocated
ASSET_TAGS = ("script", "link")

# `<script id="__ASSEMBLY_DATA__{id}" type="application/json">` holds the hydration data
DATA_ID_PREFIX = "__ASSEMBLY_DATA__"

# Tag used to encapsulate a rendered component
HTML_WRAPPER_TAG = "section"

# Marker set on the minimal error fragment returned in production mode
ERROR_MARKER_ATTR = "data-assembly-error"

STATIC_ASSET_EXTENSIONS = (
    ".js",
    ".css",
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".svg",
    ".ico",
    ".woff",
    ".woff2",
    ".ttf",
    ".eot",
)
