"""Constants for the DummySite Operator."""

# API Group
API_GROUP = "codegeek.com"
API_VERSION = "v1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_DUMMY_SITE = "DummySite"
PLURAL_DUMMY_SITES = "dummysites"
KIND_CONFIG_MAP = "ConfigMap"
KIND_DEPLOYMENT = "Deployment"
KIND_SERVICE = "Service"
KIND_INGRESS = "Ingress"

# Site States
STATE_PENDING = "Pending"
STATE_READY = "Ready"
STATE_ERROR = "Error"

# Labels
LABEL_APP = "app"
LABEL_MANAGED_BY = "app.kubernetes.io/managed-by"
LABEL_SITE_NAME = f"{API_GROUP}/site-name"

# Controller identity
CONTROLLER_NAME = "dummysite-operator"

# Dependent resource layout
CONTENT_NAME_SUFFIX = "-html"
CONTENT_FILENAME = "index.html"
CONTENT_VOLUME_NAME = "html"
CONTENT_MOUNT_PATH = "/usr/share/nginx/html"
SITE_CONTAINER_NAME = "nginx"
SITE_IMAGE = "nginx:alpine"
SITE_PORT = 80
DEFAULT_INGRESS_DOMAIN = "codegeek.com"
CLUSTER_DOMAIN = "svc.cluster.local"

# Content fetching
FETCH_TIMEOUT_SECONDS = 30.0
FETCH_READ_CHUNK_BYTES = 64 * 1024
# Kept under the 1 MiB object size limit of a ConfigMap
MAX_CONTENT_BYTES = 1000 * 1000
FETCH_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Connection": "keep-alive",
}

# Condition Types
COND_READY = "Ready"

# Condition / Event Reasons
REASON_READY = "Ready"
REASON_INVALID_SPEC = "InvalidSpec"
REASON_FETCH_FAILED = "FetchFailed"
REASON_APPLY_FAILED = "ApplyFailed"
EVENT_REASON_RESOURCE_CREATED = "ResourceCreated"
EVENT_REASON_SITE_READY = "SiteReady"
