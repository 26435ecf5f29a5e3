ENV_ENDPOINT_URL = "S3_ENDPOINT_URL"
ENV_ACCESS_KEY = "AWS_ACCESS_KEY_ID"
ENV_SECRET_KEY = "AWS_SECRET_ACCESS_KEY"
ENV_SESSION_TOKEN = "AWS_SESSION_TOKEN"
ENV_LOG_LEVEL = "S3BRIDGE_LOG_LEVEL"

DEFAULT_REGION = "us-east-1"

SECURE_SCHEME = "https://"
INSECURE_SCHEME = "http://"

DEFAULT_CONNECT_TIMEOUT = 5
DEFAULT_READ_TIMEOUT = 60
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_MODE = "standard"
DEFAULT_MAX_POOL_CONNECTIONS = 10

# Error codes S3-compatible backends use for a missing object on HeadObject
NOT_FOUND_CODES = ("NotFound", "NoSuchKey", "404")
ACCESS_DENIED_CODES = ("AccessDenied", "403", "Forbidden")
