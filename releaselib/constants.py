from datetime import timedelta

DEFAULT_CONFIG_PATH = "~/.config/release-tools.toml"

S3_URL_BASE = "https://s3.amazonaws.com"
S3_REGION_NAME = "us-east-1"

# Promotion hours are evaluated in this timezone wherever the tool runs
REFERENCE_TIMEZONE = "America/New_York"

DEFAULT_ENV = "prod"
PUBLIC_CHANNEL = ""
TEST_CHANNEL = "test"

# Written next to the artifacts by the index generator; never a release
INDEX_HTML = "index.html"

BROKEN_PREFIX = "broken/"

# Scheduled promotion to the public channel
DEFAULT_PROMOTION_DELAY = timedelta(hours=27)
DEFAULT_PROMOTION_BEFORE_HOUR = 10

# Artifact listing truncation used by list-releases
DEFAULT_LIST_LIMIT = 50

GITHUB_OWNER = "keybase"
GITHUB_COMMIT_URL_FORMAT = "https://github.com/keybase/client/commit/{commit}"

KBWEB_API_URL = "https://api-0.core.keybaseapi.com"
BUILD_NUMBER_API_URL = "https://keybase.io/_/api/1.0/pkg/build_number.json"
HTTP_TIMEOUT = 60
