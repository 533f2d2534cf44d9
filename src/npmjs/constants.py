"""Constants used in the project."""

from enum import Enum


class RegistryViews(Enum):
    """CouchDB views exposed by the npm registry couchapp.

    Args:
        Enum (string): View names queried under ``/-/_view/``.
    """

    DEPENDED_UPON = "dependedUpon"
    BROWSE_STAR_PACKAGE = "browseStarPackage"
    BY_KEYWORD = "byKeyword"
    BROWSE_AUTHORS = "browseAuthors"
    BROWSE_STAR_USER = "browseStarUser"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    REGISTRY_URL = "https://registry.npmjs.org/"
    STATSERVICE_URL = "https://api.npmjs.org/"
    MIRRORS = [
        "https://registry.npmjs.org/",
        "https://registry.yarnpkg.com/",
        "https://registry.npmmirror.com/",
    ]
    USER_AGENT = "npmjs-client/0.1.0"
    USER_PATH_PREFIX = "/-/user/org.couchdb.user:"
    VIEW_PATH_PREFIX = "/-/_view/"
    VIEW_GROUP_LEVEL = 3

    # Backoff tunables; delays are expressed in milliseconds
    BACKOFF_RETRIES = 3
    BACKOFF_MINDELAY_MS = 100
    BACKOFF_MAXDELAY_MS = 60000
    BACKOFF_FACTOR = 2

    # Fallback for documents that carry no usable dates
    CREATION_DATE = "2010-01-14T01:41:08-08:00"
    DEFAULT_VERSION = "0.0.0"

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "NPMJS_LOG_LEVEL"
    ENV_REGISTRY = "NPMJS_REGISTRY"
    ENV_MIRRORS = "NPMJS_MIRRORS"
    ENV_STATSERVICE = "NPMJS_STATSERVICE"
    ENV_RETRIES = "NPMJS_RETRIES"
    ENV_MINDELAY = "NPMJS_MINDELAY"
    ENV_MAXDELAY = "NPMJS_MAXDELAY"
    ENV_FACTOR = "NPMJS_FACTOR"
    ENV_USER = "NPMJS_USER"
    ENV_PASSWORD = "NPMJS_PASSWORD"
    ENV_TOKEN = "NPMJS_TOKEN"
